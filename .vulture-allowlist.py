# Vulture allowlist for known false positives
# This file documents intentional "unused" code that should not be flagged

# Pydantic validators use 'cls' parameter by convention (required by framework)
_.cls  # ResourceKitSettings.validate_log_level

# Context manager protocol arguments
_.exc_info  # ResourceSubscription.__exit__

# Informational action fields read by store consumers and tracing, not by the reducer
_.start_time  # ResourceLoadingStarted / ResourceReceived
_.finish_time  # ResourceReceived
