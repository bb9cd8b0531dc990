"""
LLM-as-judge template authoring: form state, model parameters, managed
templates and the public API client used to persist templates.
"""
