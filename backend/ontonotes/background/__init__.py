from .embedding import generate_and_store_note_embedding

__all__ = [
    "generate_and_store_note_embedding",
]
