def normalize_text(s: str | None) -> str:
    if s is None:
        return ""
    return s.strip().lower()


def normalize_tokens(tokens) -> list[str]:
    """Normalize every token, dropping the ones that end up empty."""
    out = []
    for t in tokens:
        n = normalize_text(t)
        if n:
            out.append(n)
    return out
