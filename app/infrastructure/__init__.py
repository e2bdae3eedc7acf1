"""Infrastructure modules for the notification dispatch service.

Centralized infrastructure components:
- configuration: Settings management (Settings, DispatchSettings, RetrySettings)
- logging: Structured logging (configure_logging, get_module_logger)
- operations: Operation results and error classification
- idempotency: Idempotency ledger (memory and DynamoDB backends)
- resilience: Retry policy, backoff and bounded retry helper
- notifications: Channel adapters (email, SMS, push) and delivery errors
- services: Dependency injection providers (get_settings, SettingsDep)
"""
