"""
Datasets, column schemas and response types.
"""

from .dataset import Dataset, Schema
from .response import ResponseType, Surv, infer_response_type, response

__all__ = [
    'Dataset',
    'Schema',
    'ResponseType',
    'Surv',
    'infer_response_type',
    'response'
]
