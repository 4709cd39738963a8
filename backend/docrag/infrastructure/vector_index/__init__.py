from .pgvector_index import PgVectorIndex

__all__ = ["PgVectorIndex"]
