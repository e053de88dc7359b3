"""Knowledge snapshot models built from CMS entries."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


def _text(fields: Dict[str, Any], key: str, default: str = "") -> str:
    value = fields.get(key)
    if value is None:
        return default
    return str(value).strip()


def _optional_text(fields: Dict[str, Any], key: str) -> Optional[str]:
    value = _text(fields, key)
    return value or None


def _price(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace("$", "").replace(",", "").strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Promotion:
    """Active promotion (content type ``promocion``)."""
    title: str
    description: str
    label: Optional[str] = None
    ends_on: Optional[str] = None
    link: Optional[str] = None

    @classmethod
    def from_fields(cls, fields: Dict[str, Any]) -> "Promotion":
        return cls(
            title=_text(fields, "titulo", "Promoción"),
            description=_text(fields, "descripcion"),
            label=_optional_text(fields, "etiqueta"),
            ends_on=_optional_text(fields, "fechaFin"),
            link=_optional_text(fields, "enlace"),
        )


@dataclass(frozen=True)
class Plan:
    """Rate plan entry. Every plan content type shares these fields."""
    title: str
    price: Optional[float]
    data_allowance: str = ""
    minutes_and_sms: str = ""
    cashback: str = ""
    social_networks: List[str] = field(default_factory=list)
    recommended: bool = False
    link: Optional[str] = None
    fair_use_policy: Optional[str] = None
    speed: Optional[str] = None

    @classmethod
    def from_fields(cls, fields: Dict[str, Any]) -> "Plan":
        networks = fields.get("redesSociales")
        if not isinstance(networks, list):
            networks = []
        return cls(
            title=_text(fields, "titulo", "Plan"),
            price=_price(fields.get("precio")),
            data_allowance=_text(fields, "datosIncluidos"),
            minutes_and_sms=_text(fields, "minutosYSmsIncluidos"),
            cashback=_text(fields, "cashbackTelcel"),
            social_networks=[n for n in networks if isinstance(n, str) and n.strip()],
            recommended=fields.get("recomendado") is True,
            link=_optional_text(fields, "enlace"),
            fair_use_policy=_optional_text(fields, "politicaDeUsoJusto"),
            speed=_optional_text(fields, "velocidadDeNavegacion"),
        )

    @property
    def price_label(self) -> str:
        """Price as it appears in the CMS, e.g. ``$299`` or ``$349.5``."""
        if self.price is None:
            return "precio no disponible"
        if self.price.is_integer():
            return f"${int(self.price)}"
        return f"${self.price!r}"


@dataclass(frozen=True)
class PlanCatalog:
    """Plans for one customer segment (personas or empresas)."""
    libre: List[Plan] = field(default_factory=list)
    ultra: List[Plan] = field(default_factory=list)
    internet: List[Plan] = field(default_factory=list)
    home_internet: List[Plan] = field(default_factory=list)


@dataclass(frozen=True)
class KnowledgeSnapshot:
    """Live pricing and promotion data fetched for one request."""
    promotions: List[Promotion] = field(default_factory=list)
    personal: PlanCatalog = field(default_factory=PlanCatalog)
    business: PlanCatalog = field(default_factory=PlanCatalog)

    def is_empty(self) -> bool:
        catalogs = (self.personal, self.business)
        return not self.promotions and not any(
            catalog.libre or catalog.ultra or catalog.internet or catalog.home_internet
            for catalog in catalogs
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
