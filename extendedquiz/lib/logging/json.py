import typing as t

from extendedquiz.lib.json import JSONEncoder as BaseJSONEncoder
from extendedquiz.lib.json import JSONValue


class JSONEncoder(BaseJSONEncoder):
    """Never fails: anything without an encoder is rendered with repr()"""

    def default(self, o: t.Any) -> JSONValue:
        try:
            return super().default(o)
        except TypeError:
            return repr(o)
