"""
Provider implementations, one subpackage per concern (embeddings, vectordb,
llm, cache). Each module exposes build_provider(settings); the
ServiceContainer imports them by name, so nothing is imported here.
"""
