from ._context import Context
from ._ncall import NCall
from ._response import Response
from .data_model import DataModel, DataModelField

__all__ = [
    "Context",
    "DataModel",
    "DataModelField",
    "NCall",
    "Response",
]
