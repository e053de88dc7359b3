"""System prompt assembly for the sales assistant."""
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from models.business import (
    ASSISTANT_NAME,
    BRANCHES,
    COMPANY_NAME,
    COMPANY_PROFILE,
    FAQS,
    TAPACHULA,
    TUXTLA,
)
from models.knowledge import KnowledgeSnapshot, Plan, PlanCatalog, Promotion

NO_PROMOTIONS_PLACEHOLDER = (
    "No hay promociones activas registradas en este momento. "
    "No inventes promociones."
)
NO_PLANS_PLACEHOLDER = (
    "No disponibles en este momento. No inventes precios ni planes; "
    "invita al cliente a llamar a un asesor."
)


def format_promotion_line(promo: Promotion) -> str:
    line = f"- **{promo.title}**: {promo.description}"
    if promo.label:
        line += f" (Etiqueta: {promo.label})"
    if promo.ends_on:
        line += f" Válido hasta: {promo.ends_on}."
    return line


def format_mobile_plan_line(plan: Plan) -> str:
    minutes = plan.minutes_and_sms or "Min/SMS ilimitados"
    line = f"- {plan.title}: {plan.price_label}/mes - {plan.data_allowance} - {minutes}"
    if plan.social_networks:
        line += f" - Redes sociales: {', '.join(plan.social_networks)}"
    if plan.recommended:
        line += " ⭐ PLAN RECOMENDADO"
    return line


def format_data_plan_line(plan: Plan) -> str:
    return f"- {plan.title}: {plan.price_label}/mes - {plan.data_allowance}"


def format_home_internet_line(plan: Plan) -> str:
    line = f"- {plan.title}: {plan.price_label}/mes - {plan.speed or plan.data_allowance}"
    if plan.fair_use_policy:
        line += f" - Política de uso justo: {plan.fair_use_policy}"
    return line


def _render(items: Iterable, formatter: Callable, placeholder: str) -> str:
    lines = [formatter(item) for item in items]
    return "\n".join(lines) if lines else placeholder


def _knowledge_sections(knowledge: KnowledgeSnapshot) -> List[str]:
    personal: PlanCatalog = knowledge.personal
    business: PlanCatalog = knowledge.business
    business_internet = list(business.internet) + list(business.home_internet)

    return [
        "# PROMOCIONES ACTIVAS\n"
        + _render(knowledge.promotions, format_promotion_line, NO_PROMOTIONS_PLACEHOLDER),
        "# PLANES TELCEL LIBRE (Sin plazo forzoso - Personas)\n"
        + _render(personal.libre, format_mobile_plan_line, NO_PLANS_PLACEHOLDER),
        "# PLANES TELCEL ULTRA (Con plazo forzoso - Personas)\n"
        + _render(personal.ultra, format_mobile_plan_line, NO_PLANS_PLACEHOLDER),
        "# INTERNET MÓVIL (Tablets/Hotspots)\n"
        + _render(personal.internet, format_data_plan_line, NO_PLANS_PLACEHOLDER),
        "# INTERNET EN TU CASA (Hogar fijo inalámbrico)\n"
        + _render(personal.home_internet, format_home_internet_line, NO_PLANS_PLACEHOLDER),
        "# PLANES EMPRESARIALES LIBRE\n"
        + _render(business.libre, format_data_plan_line, NO_PLANS_PLACEHOLDER),
        "# PLANES EMPRESARIALES ULTRA\n"
        + _render(business.ultra, format_data_plan_line, NO_PLANS_PLACEHOLDER),
        "# INTERNET EMPRESARIAL\n"
        + _render(business_internet, format_home_internet_line, NO_PLANS_PLACEHOLDER),
    ]


def _branches_section() -> str:
    lines = [
        f"📍 **{branch.city}**: {branch.address} Tel. {branch.phone} "
        f"WhatsApp: {branch.whatsapp_link} ({branch.hours})"
        for branch in BRANCHES
    ]
    return "# SUCURSALES\n" + "\n".join(lines)


def _faq_section() -> str:
    lines = [f"- {faq.question} {faq.answer}" for faq in FAQS]
    return "# PREGUNTAS FRECUENTES\n" + "\n".join(lines)


def build_system_prompt(knowledge: Optional[KnowledgeSnapshot]) -> str:
    """
    Render the system prompt from static rules plus the live knowledge snapshot.

    A None snapshot (CMS unconfigured or failing) renders exactly like an
    empty one: every category gets its placeholder instead of disappearing.

    Args:
        knowledge: Snapshot fetched for this request, or None

    Returns:
        Complete system prompt; identical output for identical input
    """
    snapshot = knowledge if knowledge is not None else KnowledgeSnapshot()

    persona = (
        "# ROL\n"
        f"Eres {ASSISTANT_NAME}, asesora virtual de {COMPANY_NAME}, {COMPANY_PROFILE}\n"
        "Tu objetivo es vender planes Telcel y resolver dudas de clientes en Chiapas."
    )

    rules = (
        "# REGLAS DE COMUNICACIÓN\n"
        "- Responde corto, claro y amable (máximo 3 párrafos).\n"
        "- Usa emojis para dar calidez 📱🏠💼\n"
        "- Si preguntan por precios, da opciones concretas de las secciones de arriba.\n"
        "- Usa solo los precios y planes listados arriba. NO INVENTES PRECIOS: si una "
        "sección dice que no hay datos, dilo y ofrece el contacto de un asesor.\n"
        "- Si preguntan por Internet en Casa, ofrece los planes de la sección \"INTERNET EN TU CASA\".\n"
        "- Si son empresas o distribuidores, ofrece planes empresariales y deriva con un asesor corporativo.\n"
        "- Siempre intenta cerrar la venta o invitar a visitar sucursal.\n"
        f"- Si piden hablar con humano: Tuxtla {TUXTLA.phone}, Tapachula {TAPACHULA.phone}.\n"
        "- Si no sabes algo, di que pueden llamar para más información."
    )

    sections = [persona, *_knowledge_sections(snapshot), _branches_section(), _faq_section(), rules]
    return "\n\n".join(sections) + "\n"


def contextual_greeting(now: Optional[datetime] = None) -> str:
    """Time-of-day greeting for the widget's first bubble."""
    hour = (now or datetime.now()).hour
    if 5 <= hour < 12:
        return "¡Buenos días! ☀️"
    if 12 <= hour < 19:
        return "¡Buenas tardes! 👋"
    return "¡Buenas noches! 🌙"
