# flake8: noqa
"""
Backend package for the AI data mapper.

Modules:
    settings:  Configuration file loading, environment overrides and ``AppConfig``.
    storage:   Flat on-disk store for uploaded inputs and saved results.
    llm:       Ollama client for text generation and model listing.
    pipeline:  Prompt assembly and the template/data mapping call.
    schemas:   Request bodies accepted by the JSON endpoints.
    templates: HTML rendering for the single-page interface.
    main:      FastAPI application wiring everything together.
"""
