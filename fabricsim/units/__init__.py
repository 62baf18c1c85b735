from .version import (
    get_version,
    get_complete_version,
    get_major_version,
)

__all__ = [
    'get_version',
    'get_complete_version',
    'get_major_version',
]
