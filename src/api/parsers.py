"""Request parsers."""
from rest_framework.parsers import JSONParser

from api.normalization import normalize_keys


class SnakeCaseJSONParser(JSONParser):
    """JSON parser that accepts camelCase keys and yields snake_case."""

    def parse(self, stream, media_type=None, parser_context=None):
        data = super().parse(stream, media_type=media_type, parser_context=parser_context)
        return normalize_keys(data)
