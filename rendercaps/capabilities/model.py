"""
Capability set data model.

A :class:`CapabilitySet` describes what a render system supports: a set of
boolean :class:`Capability` flags plus counts, limits, names and the driver
version. It performs no validation; values come from whoever fills it in.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum


# =============================================================================
# Enums
# =============================================================================


class CapabilityCategory(str, Enum):
    """Grouping of capabilities, informational only."""

    COMMON = "common"
    COMMON_2 = "common_2"
    COMMON_3 = "common_3"
    D3D9 = "d3d9"
    GL = "gl"


class Capability(Enum):
    """Closed set of boolean render system capabilities.

    The member value is the category the capability belongs to; the script
    keyword is the lowercased member name.
    """

    AUTOMIPMAP = (CapabilityCategory.COMMON, 0)
    BLENDING = (CapabilityCategory.COMMON, 1)
    ANISOTROPY = (CapabilityCategory.COMMON, 2)
    DOT3 = (CapabilityCategory.COMMON, 3)
    CUBEMAPPING = (CapabilityCategory.COMMON, 4)
    HWSTENCIL = (CapabilityCategory.COMMON, 5)
    VBO = (CapabilityCategory.COMMON, 6)
    VERTEX_PROGRAM = (CapabilityCategory.COMMON, 7)
    FRAGMENT_PROGRAM = (CapabilityCategory.COMMON, 8)
    SCISSOR_TEST = (CapabilityCategory.COMMON, 9)
    TWO_SIDED_STENCIL = (CapabilityCategory.COMMON, 10)
    STENCIL_WRAP = (CapabilityCategory.COMMON, 11)
    HWOCCLUSION = (CapabilityCategory.COMMON, 12)
    USER_CLIP_PLANES = (CapabilityCategory.COMMON, 13)
    VERTEX_FORMAT_UBYTE4 = (CapabilityCategory.COMMON, 14)
    INFINITE_FAR_PLANE = (CapabilityCategory.COMMON, 15)
    HWRENDER_TO_TEXTURE = (CapabilityCategory.COMMON, 16)
    TEXTURE_FLOAT = (CapabilityCategory.COMMON, 17)
    NON_POWER_OF_2_TEXTURES = (CapabilityCategory.COMMON, 18)
    TEXTURE_3D = (CapabilityCategory.COMMON, 19)
    POINT_SPRITES = (CapabilityCategory.COMMON, 20)
    POINT_EXTENDED_PARAMETERS = (CapabilityCategory.COMMON, 21)
    VERTEX_TEXTURE_FETCH = (CapabilityCategory.COMMON, 22)
    MIPMAP_LOD_BIAS = (CapabilityCategory.COMMON, 23)
    TEXTURE_COMPRESSION = (CapabilityCategory.COMMON_2, 0)
    TEXTURE_COMPRESSION_DXT = (CapabilityCategory.COMMON_2, 1)
    TEXTURE_COMPRESSION_VTC = (CapabilityCategory.COMMON_2, 2)
    TEXTURE_COMPRESSION_PVRTC = (CapabilityCategory.COMMON_2, 3)
    TEXTURE_COMPRESSION_BC4_BC5 = (CapabilityCategory.COMMON_2, 4)
    TEXTURE_COMPRESSION_BC6H_BC7 = (CapabilityCategory.COMMON_2, 5)
    FBO = (CapabilityCategory.COMMON_2, 6)
    FBO_ARB = (CapabilityCategory.GL, 0)
    FBO_ATI = (CapabilityCategory.GL, 1)
    PBUFFER = (CapabilityCategory.GL, 2)
    PERSTAGECONSTANT = (CapabilityCategory.D3D9, 0)
    SEPARATE_SHADER_OBJECTS = (CapabilityCategory.GL, 3)
    VAO = (CapabilityCategory.GL, 4)

    @property
    def category(self) -> CapabilityCategory:
        return self.value[0]

    @property
    def keyword(self) -> str:
        """Script key token, e.g. ``texture_compression_bc4_bc5``."""
        return self.name.lower()


class GPUVendor(str, Enum):
    """Known GPU vendors, written with their lowercase display name."""

    UNKNOWN = "unknown"
    NVIDIA = "nvidia"
    AMD = "amd"
    INTEL = "intel"
    IMAGINATION_TECHNOLOGIES = "imagination technologies"
    APPLE = "apple"
    NOKIA = "nokia"
    MS_SOFTWARE = "ms software"
    MS_WARP = "ms warp"
    ARM = "arm"
    QUALCOMM = "qualcomm"
    MOZILLA = "mozilla"
    WEBKIT = "webkit"

    @classmethod
    def from_string(cls, text: str) -> GPUVendor:
        """Case-insensitive lookup; unrecognised names map to UNKNOWN."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class DriverVersion:
    """Driver version as reported by the device."""

    major: int = 0
    minor: int = 0
    release: int = 0
    build: int = 0

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.release, self.build)

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.as_tuple())

    @classmethod
    def from_string(cls, text: str) -> DriverVersion:
        """Parse ``major[.minor[.release[.build]]]``.

        Missing trailing components are zero.

        Raises:
            ValueError: If there are more than four components or any of
                them is not an integer
        """
        parts = text.strip().split(".")
        if not 1 <= len(parts) <= 4:
            raise ValueError(f"invalid driver version: {text!r}")
        numbers: list[int] = []
        for part in parts:
            if not (part.isascii() and part.isdigit()):
                raise ValueError(f"invalid driver version: {text!r}")
            numbers.append(int(part))
        numbers.extend([0] * (4 - len(numbers)))
        return cls(*numbers)


@dataclass
class CapabilitySet:
    """All capabilities of one render system profile.

    The registration name is not part of the set; the codec and the registry
    carry it alongside.
    """

    # Boolean capabilities and shader profiles
    flags: set[Capability] = field(default_factory=set)
    shader_profiles: set[str] = field(default_factory=set)

    # Identity
    render_system_name: str = ""
    device_name: str = ""
    vendor: GPUVendor = GPUVendor.UNKNOWN
    driver_version: DriverVersion = field(default_factory=DriverVersion)

    # Boolean attributes outside the flag set
    non_pow2_textures_limited: bool = False
    vertex_texture_units_shared: bool = False

    # Counts
    num_world_matrices: int = 0
    num_texture_units: int = 0
    stencil_buffer_bit_depth: int = 0
    num_vertex_blend_matrices: int = 0
    num_multi_render_targets: int = 0
    vertex_program_constant_float_count: int = 0
    vertex_program_constant_int_count: int = 0
    vertex_program_constant_bool_count: int = 0
    fragment_program_constant_float_count: int = 0
    fragment_program_constant_int_count: int = 0
    fragment_program_constant_bool_count: int = 0
    num_vertex_texture_units: int = 0

    # Limits
    max_point_size: float = 0.0

    @staticmethod
    def _check_flag(flag: Capability) -> None:
        if not isinstance(flag, Capability):
            raise TypeError(f"not a Capability: {flag!r}")

    def set_capability(self, flag: Capability) -> None:
        self._check_flag(flag)
        self.flags.add(flag)

    def unset_capability(self, flag: Capability) -> None:
        self._check_flag(flag)
        self.flags.discard(flag)

    def has_capability(self, flag: Capability) -> bool:
        self._check_flag(flag)
        return flag in self.flags

    def add_shader_profile(self, profile: str) -> None:
        """Add a profile token such as ``vs_3_0``.

        Raises:
            ValueError: Empty token or one containing whitespace
        """
        if not profile or len(profile.split()) != 1 or profile != profile.strip():
            raise ValueError(f"shader profile must be a single non-empty token: {profile!r}")
        self.shader_profiles.add(profile)

    def remove_shader_profile(self, profile: str) -> None:
        self.shader_profiles.discard(profile)

    def is_shader_profile_supported(self, profile: str) -> bool:
        return profile in self.shader_profiles

    def is_driver_older_than(self, version: DriverVersion) -> bool:
        return self.driver_version.as_tuple() < version.as_tuple()

    def copy(self) -> CapabilitySet:
        """Independent copy; registered sets must not be mutated in place."""
        return copy.deepcopy(self)
