"""Records shared by the layout engine, compositor and batch orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union

from .config import settings

PriceValue = Union[str, int, float, None]


class ThemeKind(Enum):
    """Visual card variants."""

    CLASSIC = "classic"
    GLASS = "glass"

    @classmethod
    def parse(cls, value: Union[str, "ThemeKind", None]) -> "ThemeKind":
        """Parse a theme name, falling back to CLASSIC for anything unknown."""
        if isinstance(value, ThemeKind):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.CLASSIC

    @property
    def base_width(self) -> int:
        """Default logical card width for this theme."""
        if self is ThemeKind.GLASS:
            return settings.glass_width
        return settings.classic_width


@dataclass
class DynamicField:
    """One configurable attribute line on a card (e.g. ``Colour : Red``)."""

    key: str
    label: str
    value: str = ""
    unit: str = ""
    units_enabled: bool = False
    visible: Optional[bool] = True

    @property
    def has_value(self) -> bool:
        return bool(str(self.value if self.value is not None else "").strip())

    @property
    def is_rendered(self) -> bool:
        """Non-empty and not explicitly hidden."""
        return self.has_value and self.visible is not False

    @property
    def display_value(self) -> str:
        unit = (self.unit or "").strip()
        if self.units_enabled and unit and unit != "None":
            return f"{self.value} {unit}"
        return f"{self.value}"


@dataclass(frozen=True)
class ProductRenderData:
    """Immutable snapshot of everything one card render needs."""

    name: str
    subtitle: str = ""
    image: str = ""
    fields: tuple[DynamicField, ...] = ()
    price: PriceValue = None
    price_unit: str = ""
    badge: str = ""
    crop_aspect_ratio: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        try:
            ratio = float(self.crop_aspect_ratio or 1.0)
        except (TypeError, ValueError):
            ratio = 1.0
        object.__setattr__(self, "crop_aspect_ratio", ratio if ratio > 0 else 1.0)

    @property
    def rendered_fields(self) -> list[DynamicField]:
        return [f for f in self.fields if f.is_rendered]


@dataclass
class RenderOptions:
    """Theme-level drawing options for one render call."""

    width: int
    scale: float = 3
    bg_color: str = "#add8e6"
    image_bg_color: str = "white"
    font_color: str = "white"
    background_color: str = "#ffffff"
    currency_symbol: Optional[str] = field(default_factory=lambda: settings.currency_symbol)
    price_position: str = "top"

    @classmethod
    def for_theme(cls, theme: ThemeKind, **overrides: Any) -> "RenderOptions":
        """Build options from settings defaults, applying non-None overrides."""
        values = {
            "width": theme.base_width,
            "scale": settings.render_scale,
            "bg_color": settings.default_bg_color,
            "image_bg_color": settings.default_image_bg_color,
            "font_color": settings.default_font_color,
            "background_color": settings.canvas_background_color,
            "currency_symbol": settings.currency_symbol,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class WatermarkConfig:
    """Watermark text and anchor."""

    enabled: bool = False
    text: str = ""
    position: str = "bottom-center"

    @property
    def is_active(self) -> bool:
        return bool(self.enabled and self.text)

    @classmethod
    def from_settings(cls) -> "WatermarkConfig":
        return cls(
            enabled=settings.watermark_enabled,
            text=settings.watermark_text,
            position=settings.watermark_position,
        )


@dataclass
class FieldConfig:
    """Configuration of one dynamic field slot (``field1`` .. ``fieldN``)."""

    key: str
    label: str
    enabled: bool = True
    visible: bool = True
    unit_field: Optional[str] = None
    unit_options: list[str] = field(default_factory=list)
    default_unit: Optional[str] = None

    @property
    def units_enabled(self) -> bool:
        return bool(self.unit_field or self.unit_options)

    @property
    def unit_key(self) -> str:
        return self.unit_field or f"{self.key}Unit"

    @property
    def visibility_key(self) -> str:
        return f"{self.key}Visible"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "enabled": self.enabled,
            "visible": self.visible,
            "unitField": self.unit_field,
            "unitOptions": self.unit_options,
            "defaultUnit": self.default_unit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FieldConfig":
        return cls(
            key=data["key"],
            label=data.get("label", data["key"]),
            enabled=data.get("enabled", True) is not False,
            visible=data.get("visible", True) is not False,
            unit_field=data.get("unitField"),
            unit_options=list(data.get("unitOptions") or []),
            default_unit=data.get("defaultUnit"),
        )


DEFAULT_FIELDS: list[FieldConfig] = [
    FieldConfig("field1", "Colour"),
    FieldConfig(
        "field2",
        "Package",
        unit_field="field2Unit",
        unit_options=["pcs / set", "pcs / dozen", "pcs / pack"],
        default_unit="pcs / set",
    ),
    FieldConfig(
        "field3",
        "Age Group",
        unit_field="field3Unit",
        unit_options=["months", "years"],
        default_unit="months",
    ),
] + [FieldConfig(f"field{n}", f"Field {n}", enabled=False) for n in range(4, 11)]


@dataclass
class Catalogue:
    """A catalogue: its own price/stock columns and output folder."""

    id: str
    label: str
    price_field: str = "price1"
    price_unit_field: Optional[str] = None
    stock_field: Optional[str] = None
    folder: Optional[str] = None

    def __post_init__(self):
        self.price_unit_field = self.price_unit_field or f"{self.price_field}Unit"
        self.stock_field = self.stock_field or f"{self.price_field}Stock"
        self.folder = self.folder or self.label

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "priceField": self.price_field,
            "priceUnitField": self.price_unit_field,
            "stockField": self.stock_field,
            "folder": self.folder,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Catalogue":
        return cls(
            id=str(data["id"]),
            label=data.get("label", str(data["id"])),
            price_field=data.get("priceField", "price1"),
            price_unit_field=data.get("priceUnitField"),
            stock_field=data.get("stockField"),
            folder=data.get("folder"),
        )


DEFAULT_CATALOGUES: list[Catalogue] = [
    Catalogue("cat1", "Master", "price1", "price1Unit", "wholesaleStock", "Master"),
]

# Pre-field-config product keys, read when the new key is absent
LEGACY_VALUE_KEYS = {
    "field1": "color",
    "field2": "package",
    "field2Unit": "packageUnit",
    "field3": "age",
    "field3Unit": "ageUnit",
    "price1": "wholesale",
    "price1Unit": "wholesaleUnit",
    "price2": "resell",
    "price2Unit": "resellUnit",
}

_PRODUCT_KEYS = {
    "id": "id",
    "name": "name",
    "subtitle": "subtitle",
    "image": "image",
    "imagePath": "image_path",
    "badge": "badge",
    "cropAspectRatio": "crop_aspect_ratio",
    "bgColor": "bg_color",
    "imageBgColor": "image_bg_color",
    "fontColor": "font_color",
}


@dataclass
class Product:
    """A catalogue-app product record as stored by the app."""

    id: str
    name: str
    subtitle: str = ""
    image: str = ""
    image_path: str = ""
    badge: str = ""
    crop_aspect_ratio: float = 1.0
    bg_color: Optional[str] = None
    image_bg_color: Optional[str] = None
    font_color: Optional[str] = None
    values: dict[str, Any] = field(default_factory=dict)
    catalogue_data: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def has_image(self) -> bool:
        return bool(self.image or self.image_path)

    @property
    def image_ref(self) -> str:
        return self.image or self.image_path

    def values_for(self, catalogue: Catalogue) -> dict[str, Any]:
        """Flat values with this catalogue's overrides applied on top."""
        merged = dict(self.values)
        for new_key, legacy_key in LEGACY_VALUE_KEYS.items():
            if merged.get(new_key) in (None, "") and merged.get(legacy_key) not in (None, ""):
                merged[new_key] = merged[legacy_key]
        overrides = self.catalogue_data.get(catalogue.id) or {}
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return merged

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        known = {}
        values = {}
        for key, value in data.items():
            if key in _PRODUCT_KEYS:
                known[_PRODUCT_KEYS[key]] = value
            elif key != "catalogueData":
                values[key] = value
        return cls(
            id=str(known.pop("id", "") or "temp-id"),
            name=str(known.pop("name", "") or ""),
            subtitle=known.pop("subtitle", "") or "",
            image=known.pop("image", "") or "",
            image_path=known.pop("image_path", "") or "",
            badge=known.pop("badge", "") or "",
            crop_aspect_ratio=known.pop("crop_aspect_ratio", 1.0) or 1.0,
            values=values,
            catalogue_data=dict(data.get("catalogueData") or {}),
            **known,
        )


@dataclass
class RenderJob:
    """One (product, catalogue) pair with catalogue-specific values resolved."""

    product: Product
    catalogue: Catalogue
    values: dict[str, Any]
    price: PriceValue = None
    price_unit: str = ""
    in_stock: bool = True

    @property
    def label(self) -> str:
        return self.catalogue.label

    @property
    def folder(self) -> str:
        return self.catalogue.folder or self.catalogue.label


@dataclass
class RenderStats:
    """Success/failure accounting for one batch."""

    successful: int = 0
    failed: int = 0
    failed_product_names: list[str] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.successful + self.failed

    def record_success(self) -> None:
        self.successful += 1

    def record_failure(self, product_name: str) -> None:
        self.failed += 1
        if product_name not in self.failed_product_names:
            self.failed_product_names.append(product_name)

    def copy(self) -> "RenderStats":
        return RenderStats(self.successful, self.failed, list(self.failed_product_names))

    def to_dict(self) -> dict:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "failed_product_names": list(self.failed_product_names),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RenderStats":
        data = data or {}
        return cls(
            successful=int(data.get("successful", 0)),
            failed=int(data.get("failed", 0)),
            failed_product_names=list(data.get("failed_product_names", [])),
        )


@dataclass
class RenderingState:
    """Mutable progress of the running batch; persisted after every step."""

    is_rendering: bool = False
    is_cancelled: bool = False
    current_product_index: int = 0
    total_products: int = 0
    current_catalogue_index: int = 0
    total_catalogues: int = 0
    completed_items: int = 0
    stats: RenderStats = field(default_factory=RenderStats)
    checkpoint: RenderStats = field(default_factory=RenderStats)
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_items(self) -> int:
        return self.total_products * self.total_catalogues

    @property
    def percentage(self) -> float:
        if not self.total_items:
            return 100.0
        return self.completed_items / self.total_items * 100

    def is_stale(self, max_age_hours: float) -> bool:
        """Check if the saved state is too old to resume."""
        reference = self.updated_at or self.started_at
        if not reference:
            return True
        return datetime.now() - reference > timedelta(hours=max_age_hours)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_rendering": self.is_rendering,
            "is_cancelled": self.is_cancelled,
            "current_product_index": self.current_product_index,
            "total_products": self.total_products,
            "current_catalogue_index": self.current_catalogue_index,
            "total_catalogues": self.total_catalogues,
            "completed_items": self.completed_items,
            "stats": self.stats.to_dict(),
            "checkpoint": self.checkpoint.to_dict(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RenderingState":
        """Create from dictionary."""
        started_at = datetime.fromisoformat(data["started_at"]) if data.get("started_at") else None
        updated_at = datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None
        return cls(
            is_rendering=bool(data.get("is_rendering", False)),
            is_cancelled=bool(data.get("is_cancelled", False)),
            current_product_index=int(data.get("current_product_index", 0)),
            total_products=int(data.get("total_products", 0)),
            current_catalogue_index=int(data.get("current_catalogue_index", 0)),
            total_catalogues=int(data.get("total_catalogues", 0)),
            completed_items=int(data.get("completed_items", 0)),
            stats=RenderStats.from_dict(data.get("stats")),
            checkpoint=RenderStats.from_dict(data.get("checkpoint")),
            started_at=started_at,
            updated_at=updated_at,
        )
