"""
Shared building blocks for the WeChat SDK.

- config: SDK settings via pydantic-settings
- logging: Structured logging with correlation context
- errors: Canonical error types

Do not import from credential/ or officialaccount/ into shared/.
"""
