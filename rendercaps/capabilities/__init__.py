"""
Render system capabilities.

Capability sets, the ``.rendercaps`` script codec, and a registry that loads
named sets from script archives.
"""

from .errors import (  # noqa: F401
    CapabilityScriptError,
    ScriptStructureError,
    ScriptValueError,
    UnknownKeywordError,
)
from .model import (  # noqa: F401
    Capability,
    CapabilityCategory,
    CapabilitySet,
    DriverVersion,
    GPUVendor,
)
from .registry import CapabilityRegistry, LoadReport  # noqa: F401
from .serializer import (  # noqa: F401
    KEYWORDS,
    decode,
    decode_all,
    encode,
    parse_stream,
    write_script,
)
