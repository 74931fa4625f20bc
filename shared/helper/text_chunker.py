"""Default text chunker for the indexing pipeline."""

CHUNK_SIZE = 1000       # characters per text chunk
CHUNK_OVERLAP = 100     # character overlap between consecutive chunks


def split_text(text: str, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP) -> list[str]:
    """Split a capture's cleaned text into overlapping chunks.

    Args:
        text (str): The full document text.
        chunk_size (int): Maximum characters per chunk.
        chunk_overlap (int): Characters shared by consecutive chunks. Must be smaller than chunk_size.

    Returns:
        list[str]: Ordered list of text chunks. Empty for empty or whitespace-only text.

    Raises:
        ValueError: If the overlap is not smaller than the chunk size.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")
    if not text or not text.strip():
        return []
    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start = end - chunk_overlap
    return chunks
