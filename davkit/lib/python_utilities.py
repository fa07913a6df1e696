def to_unicode(text):
    if text and isinstance(text, bytes):
        return text.decode("utf-8")
    return text
