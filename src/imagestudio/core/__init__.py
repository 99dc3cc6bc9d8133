"""
Core modules for imagestudio.

This package contains the core business logic for:
- Configuration management
- Retry with backoff and error classification
- Gemini request building and response parsing
- Prompt enhancement and image analysis
- Editor session state
"""
