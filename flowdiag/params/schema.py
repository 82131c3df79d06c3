"""Parameter schema with validation. Units: SI (m, s, m/s, 1/s, 1/s², m²/s)."""

import math
from dataclasses import asdict, dataclass, field
from typing import Any

EARTH_ROTATION_RATE = 7.292115e-5  # [rad/s]

DIAGNOSTIC_NAMES: tuple[str, ...] = (
    "richardson_number",
    "rossby_number",
    "thermal_wind_potential_vorticity",
    "ertel_potential_vorticity",
    "isotropic_tracer_variance_dissipation_rate",
    "anisotropic_tracer_variance_dissipation_rate",
)


class ValidationError(ValueError):
    """Parameter validation failed."""
    pass


def _positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def _non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _finite(value: float, name: str) -> None:
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class GridParams:
    """Uniform grid: nx, ny, nz (cells), Lx, Ly, Lz (extent [m]), halo."""
    nx: int = 16
    ny: int = 16
    nz: int = 16
    Lx: float = 1.0
    Ly: float = 1.0
    Lz: float = 1.0
    halo: int = 1

    def __post_init__(self) -> None:
        for name in ("nx", "ny", "nz"):
            if getattr(self, name) < 1:
                raise ValidationError(f"{name} must be >= 1, got {getattr(self, name)}")
        _positive(self.Lx, "Lx")
        _positive(self.Ly, "Ly")
        _positive(self.Lz, "Lz")
        if self.halo < 1:
            raise ValidationError(f"halo must be >= 1, got {self.halo}")

    @property
    def spacing(self) -> tuple[float, float, float]:
        return (self.Lx / self.nx, self.Ly / self.ny, self.Lz / self.nz)


# =============================================================================
# Rotation models
# =============================================================================


@dataclass(frozen=True)
class FPlane:
    """Uniform rotation: a single Coriolis parameter f [1/s]."""
    f: float

    def __post_init__(self) -> None:
        _finite(self.f, "f")

    @classmethod
    def from_latitude(
        cls, latitude: float, rotation_rate: float = EARTH_ROTATION_RATE
    ) -> "FPlane":
        """f = 2Ω sin(latitude), latitude in degrees."""
        return cls(f=2 * rotation_rate * math.sin(math.radians(latitude)))


@dataclass(frozen=True)
class ConstantCartesianCoriolis:
    """Rotation with three independent components fx, fy, fz [1/s]."""
    fx: float = 0.0
    fy: float = 0.0
    fz: float = 0.0

    def __post_init__(self) -> None:
        _finite(self.fx, "fx")
        _finite(self.fy, "fy")
        _finite(self.fz, "fz")

    @classmethod
    def from_latitude(
        cls, latitude: float, rotation_rate: float = EARTH_ROTATION_RATE
    ) -> "ConstantCartesianCoriolis":
        """Full rotation vector at a latitude (x east, y north, z up)."""
        phi = math.radians(latitude)
        return cls(
            fx=0.0,
            fy=2 * rotation_rate * math.cos(phi),
            fz=2 * rotation_rate * math.sin(phi),
        )


@dataclass(frozen=True)
class BetaPlane:
    """Latitudinally varying rotation f = f0 + beta*y."""
    f0: float
    beta: float

    def __post_init__(self) -> None:
        _finite(self.f0, "f0")
        _finite(self.beta, "beta")


_CORIOLIS_MODELS = {
    "f_plane": FPlane,
    "constant_cartesian": ConstantCartesianCoriolis,
    "beta_plane": BetaPlane,
}


def coriolis_to_dict(coriolis) -> dict[str, Any] | None:
    """Tagged dictionary form, e.g. {'model': 'f_plane', 'f': 1e-4}."""
    if coriolis is None:
        return None
    for tag, cls in _CORIOLIS_MODELS.items():
        if type(coriolis) is cls:
            return {"model": tag, **asdict(coriolis)}
    raise ValidationError(f"Unknown rotation model: {type(coriolis).__name__}")


def coriolis_from_dict(data: dict[str, Any] | None):
    """Inverse of coriolis_to_dict."""
    if data is None:
        return None
    data = dict(data)
    tag = data.pop("model", None)
    if tag not in _CORIOLIS_MODELS:
        raise ValidationError(
            f"Unknown rotation model: {tag}. Available: {list(_CORIOLIS_MODELS)}"
        )
    return _CORIOLIS_MODELS[tag](**data)


# =============================================================================
# Kernel parameter records
# =============================================================================


@dataclass(frozen=True)
class CoriolisComponents:
    """Rotation vector handed to the Ertel PV kernel."""
    fx: float
    fy: float
    fz: float


@dataclass(frozen=True)
class ShearBackground:
    """Background gradients: N2_bg [1/s²], dUdz_bg, dVdz_bg, dUdy_bg, dVdx_bg [1/s]."""
    N2_bg: float = 0.0
    dUdz_bg: float = 0.0
    dVdz_bg: float = 0.0
    dUdy_bg: float = 0.0
    dVdx_bg: float = 0.0

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            _finite(value, name)


@dataclass(frozen=True)
class AnisotropicDiffusivity:
    """Per-axis tracer diffusivities kx, ky, kz [m²/s]."""
    kx: float
    ky: float
    kz: float

    def __post_init__(self) -> None:
        _non_negative(self.kx, "kx")
        _non_negative(self.ky, "ky")
        _non_negative(self.kz, "kz")


@dataclass(frozen=True)
class DiffusivityParams:
    """Diffusivities: kappa (isotropic), kx, ky, kz (anisotropic) [m²/s]."""
    kappa: float = 1e-5
    kx: float = 1e-5
    ky: float = 1e-5
    kz: float = 1e-5

    def __post_init__(self) -> None:
        _non_negative(self.kappa, "kappa")
        _non_negative(self.kx, "kx")
        _non_negative(self.ky, "ky")
        _non_negative(self.kz, "kz")

    @property
    def anisotropic(self) -> AnisotropicDiffusivity:
        return AnisotropicDiffusivity(self.kx, self.ky, self.kz)


# =============================================================================
# Complete configuration
# =============================================================================


@dataclass(frozen=True)
class DiagnosticsConfig:
    """Complete diagnostics configuration."""

    grid: GridParams = field(default_factory=GridParams)
    coriolis: FPlane | ConstantCartesianCoriolis | BetaPlane | None = None
    background: ShearBackground = field(default_factory=ShearBackground)
    diffusivity: DiffusivityParams = field(default_factory=DiffusivityParams)
    diagnostics: tuple[str, ...] = DIAGNOSTIC_NAMES

    def __post_init__(self) -> None:
        # Lists from YAML become tuples so the record stays hashable
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
        unknown = [name for name in self.diagnostics if name not in DIAGNOSTIC_NAMES]
        if unknown:
            raise ValidationError(
                f"Unknown diagnostics: {unknown}. Available: {list(DIAGNOSTIC_NAMES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionary."""
        return {
            "grid": asdict(self.grid),
            "coriolis": coriolis_to_dict(self.coriolis),
            "background": asdict(self.background),
            "diffusivity": asdict(self.diffusivity),
            "diagnostics": list(self.diagnostics),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticsConfig":
        """Create from nested dictionary."""
        param_classes = {
            "grid": GridParams,
            "background": ShearBackground,
            "diffusivity": DiffusivityParams,
        }
        unknown = set(data) - set(param_classes) - {"coriolis", "diagnostics"}
        if unknown:
            raise ValidationError(f"Unknown parameter groups: {sorted(unknown)}")

        kwargs: dict[str, Any] = {
            k: param_classes[k](**(data[k] or {})) for k in data if k in param_classes
        }
        if "coriolis" in data:
            kwargs["coriolis"] = coriolis_from_dict(data["coriolis"])
        if "diagnostics" in data:
            kwargs["diagnostics"] = tuple(data["diagnostics"] or ())
        return cls(**kwargs)

    def with_updates(self, **kwargs: Any) -> "DiagnosticsConfig":
        """Create new config with updates."""
        current = self.to_dict()
        for key, value in kwargs.items():
            if key not in current:
                raise ValidationError(f"Unknown parameter group: {key}")
            if key == "coriolis":
                current[key] = value if isinstance(value, dict) or value is None else coriolis_to_dict(value)
            elif key == "diagnostics":
                current[key] = list(value)
            elif isinstance(value, dict):
                current[key].update(value)
            else:
                current[key] = asdict(value)
        return self.from_dict(current)
