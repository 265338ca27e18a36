def remove_last_newline(data: bytes):
    return data[:-1] if data.endswith(b'\n') else data

def preview_bytes(data: bytes, limit: int = 80) -> str:
    text = remove_last_newline(bytes(data)).decode("utf-8", errors="replace")
    return text if len(text) <= limit else text[:limit] + "..."
