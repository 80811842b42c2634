"""Core publishing logic.

- deploy: deployable assembly, aggregation, duplicate check and upload
"""

__all__: list[str] = []
