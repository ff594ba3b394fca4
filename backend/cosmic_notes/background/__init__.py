from .embedding import generate_and_store_note_embedding, schedule_note_embeddings

__all__ = [
    "generate_and_store_note_embedding",
    "schedule_note_embeddings",
]
