"""Static business profile: branches, published contact channels and FAQs."""
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Branch:
    """A physical store."""
    name: str
    city: str
    address: str
    phone: str
    hours: str
    whatsapp_link: str


@dataclass(frozen=True)
class FAQ:
    """Frequently asked question used to ground the assistant."""
    question: str
    answer: str
    category: str  # ventas | socios | soporte | cobertura


COMPANY_NAME = "Grupo Línea Digital"
COMPANY_PROFILE = "Distribuidor Autorizado Premium Telcel en el Sureste."
ASSISTANT_NAME = "Lía"
WEBSITE = "lineadigital.com"

TUXTLA = Branch(
    name="Corporativo Tuxtla",
    city="Tuxtla Gutiérrez",
    address="1a Av. Norte Poniente #834, Centro.",
    phone="961 618 92 00",
    hours="Lunes a Viernes: 9:00 AM - 6:00 PM",
    whatsapp_link="https://wa.me/529616189200",
)

TAPACHULA = Branch(
    name="Sucursal Tapachula",
    city="Tapachula",
    address="4a. Av. Nte. 70, Los Naranjos.",
    phone="962 625 58 10",
    hours="Lunes a Viernes: 9:00 AM - 6:00 PM",
    whatsapp_link="https://wa.me/529626255810",
)

BRANCHES: List[Branch] = [TUXTLA, TAPACHULA]

# Both published phone lines, as they must appear in every canned reply
CONTACT_PHONES = f"📞 Tuxtla: {TUXTLA.phone}\n📞 Tapachula: {TAPACHULA.phone}"

FAQS: List[FAQ] = [
    FAQ(
        question="¿Qué necesito para sacar un plan?",
        answer="Solo tu INE vigente, comprobante de domicilio reciente y una tarjeta bancaria (crédito/débito).",
        category="ventas",
    ),
    FAQ(
        question="¿Venden al mayoreo?",
        answer="Sí. Manejamos precios especiales a partir de 3 piezas para distribuidores registrados.",
        category="socios",
    ),
    FAQ(
        question="¿Cómo me vuelvo distribuidor?",
        answer="Es gratis y rápido. Te damos de alta el mismo día para que vendas tiempo aire y chips.",
        category="socios",
    ),
    FAQ(
        question="¿Tienen cobertura en mi zona?",
        answer="Cubrimos el 95% de Chiapas con red 4.5G y las principales ciudades con 5G.",
        category="cobertura",
    ),
]
