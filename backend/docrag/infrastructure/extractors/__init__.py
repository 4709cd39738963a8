from .multi_format_text_extractor import MultiFormatTextExtractor, clean_text

__all__ = ["MultiFormatTextExtractor", "clean_text"]
