"""Canned replies used when the chat model is unavailable."""
import logging
import re
from typing import Optional

from models.business import ASSISTANT_NAME, COMPANY_NAME, CONTACT_PHONES, TAPACHULA, TUXTLA, WEBSITE
from services.intent_classifier import IntentClassifier

logger = logging.getLogger(__name__)


class FallbackResponder:
    """
    Deterministic replies keyed by greeting pattern, then by intent.

    Every reply carries both published phone lines so the visitor always has a
    human channel when the assistant is degraded.
    """

    GREETING_PATTERN = re.compile(
        r"^(hola|buenos d[ií]as|buenas tardes|buenas noches|hey|qu[eé] tal)"
    )

    # Checked in this order; the first label present wins
    PRIORITY = (
        IntentClassifier.CONTACT,
        IntentClassifier.HOURS,
        IntentClassifier.PURCHASE,
        IntentClassifier.BUSINESS,
        IntentClassifier.SUPPORT,
    )

    TAPACHULA_HINTS = ("tapachula", "frontera", "soconusco")

    def __init__(self, classifier: Optional[IntentClassifier] = None):
        self.classifier = classifier or IntentClassifier()

    def respond(self, message: str) -> str:
        """Pick the canned reply for ``message``."""
        text = (message or "").strip().lower()

        if self.GREETING_PATTERN.match(text):
            return self._greeting()

        intents = self.classifier.classify(text)
        for label in self.PRIORITY:
            if label in intents:
                logger.debug(f"Fallback branch: {label}")
                return getattr(self, f"_{label}")(message)

        return self._generic()

    def whatsapp_link(self, message: str) -> str:
        """WhatsApp line of the branch the visitor mentions, Tuxtla by default."""
        lowered = (message or "").lower()
        if any(hint in lowered for hint in self.TAPACHULA_HINTS):
            return TAPACHULA.whatsapp_link
        return TUXTLA.whatsapp_link

    def _greeting(self) -> str:
        return (
            f"¡Hola! 👋 Soy **{ASSISTANT_NAME}**, tu asesora digital de {COMPANY_NAME}.\n\n"
            "Estoy aquí para ayudarte con:\n"
            "📱 Planes móviles\n🏠 Internet en casa\n📍 Ubicaciones\n💼 Soluciones empresariales\n\n"
            "¿Qué te interesa?\n\n"
            f"Si prefieres hablar con un asesor:\n{CONTACT_PHONES}"
        )

    def _contact(self, message: str) -> str:
        return (
            "🏢 **Nuestras Sucursales:**\n\n"
            f"📍 **{TUXTLA.city}**\n{TUXTLA.address}\n📞 {TUXTLA.phone}\n"
            f"💬 WhatsApp: {TUXTLA.whatsapp_link}\n\n"
            f"📍 **{TAPACHULA.city}**\n{TAPACHULA.address}\n📞 {TAPACHULA.phone}\n"
            f"💬 WhatsApp: {TAPACHULA.whatsapp_link}\n\n"
            "⏰ Lun-Vie: 9:00 AM - 6:00 PM\n\n"
            "¿Te gustaría que te contacte un asesor? 😊"
        )

    def _hours(self, message: str) -> str:
        return (
            "⏰ **Nuestro horario de atención:**\n\n"
            "**Lunes a Viernes**\n9:00 AM - 6:00 PM\n\n"
            "📍 Ambas sucursales (Tuxtla y Tapachula)\n\n"
            f"¿Te gustaría agendar una visita? Llámanos:\n{CONTACT_PHONES}"
        )

    def _purchase(self, message: str) -> str:
        return (
            "📱 **Nuestros Planes:**\n\n"
            "💙 **Telcel Libre** - Sin plazo forzoso\n"
            "⭐ **Telcel Ultra** - Datos 5G y redes sociales\n"
            "🏠 **Internet en Casa** - Instalación sin cables\n\n"
            "Para precios vigentes y una asesoría personalizada:\n"
            f"{CONTACT_PHONES}\n"
            f"💬 WhatsApp: {self.whatsapp_link(message)}\n\n"
            f"O visita: {WEBSITE}/personas 😊"
        )

    def _business(self, message: str) -> str:
        return (
            "💼 **Soluciones Empresariales**\n\n"
            "Tenemos planes especiales para negocios:\n"
            "✅ Descuentos por volumen\n✅ Gestión centralizada\n"
            "✅ Soporte dedicado\n✅ Alta express el mismo día\n\n"
            "Para una cotización personalizada, contacta a nuestro equipo corporativo:\n"
            f"{CONTACT_PHONES}\n"
            f"💬 WhatsApp: {self.whatsapp_link(message)}\n\n"
            f"O visita: {WEBSITE}/empresas"
        )

    def _support(self, message: str) -> str:
        return (
            "🔧 **Soporte Técnico**\n\n"
            "Lamento el inconveniente. Para asistencia inmediata:\n"
            f"{CONTACT_PHONES}\n\n"
            "⏰ Lun-Vie: 9:00 AM - 6:00 PM\n\n"
            "También puedes visitarnos en nuestras sucursales con tu equipo. 😊"
        )

    def _generic(self) -> str:
        return (
            "Gracias por contactarme. 😊\n\n"
            "Para ayudarte mejor, puedo informarte sobre:\n"
            "📱 Planes móviles\n🏠 Internet en casa\n📍 Ubicaciones y horarios\n"
            "💼 Soluciones empresariales\n\n"
            "¿Qué te interesa?\n\n"
            f"O si prefieres hablar con un asesor:\n{CONTACT_PHONES}"
        )
