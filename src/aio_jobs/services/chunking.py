"""Text chunking for embedding jobs."""


def chunk_text(text: str, max_chunk_size: int = 1000, overlap: int = 100) -> list[str]:
    """
    Split text into fixed-size chunks that overlap by `overlap` characters.

    Args:
        text: Text to split
        max_chunk_size: Maximum characters per chunk
        overlap: Characters repeated at the start of the next chunk

    Returns:
        List of chunks; text shorter than max_chunk_size is a single chunk
    """
    if overlap >= max_chunk_size:
        raise ValueError("overlap must be smaller than max_chunk_size")

    if len(text) <= max_chunk_size:
        return [text]

    chunks = []
    start = 0
    while start < len(text):
        end = min(start + max_chunk_size, len(text))
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start = end - overlap

    return chunks
