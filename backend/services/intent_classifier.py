"""
Keyword intent classifier for chat messages.

Maps free text to coarse intent labels by plain substring matching against a
fixed keyword table. Labels pick the canned fallback copy and the quick-reply
buttons shown by the chat widget.
"""

import logging
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class IntentClassifier:
    """Deterministic, case-insensitive keyword classifier."""

    # Intent labels
    PURCHASE = "purchase"
    BUSINESS = "business"
    SUPPORT = "support"
    CONTACT = "contact"
    HOURS = "hours"

    # Table order is the order labels are reported in
    KEYWORDS: Dict[str, Sequence[str]] = {
        PURCHASE: (
            "comprar", "precio", "costo", "plan", "interesa", "iphone", "samsung",
            "quiero", "internet", "casa", "celular", "promo", "contratar",
        ),
        BUSINESS: (
            "vender", "distribuidor", "mayoreo", "comisión", "comision", "socio",
            "proveedor", "empresa", "negocio", "factura", "flotilla",
        ),
        SUPPORT: (
            "ayuda", "falla", "no sirve", "no funciona", "garantía", "garantia",
            "señal", "senal", "problema",
        ),
        CONTACT: (
            "ubicación", "ubicacion", "dónde están", "donde estan", "dirección",
            "direccion", "sucursal", "teléfono", "telefono", "whatsapp", "contacto",
        ),
        HOURS: ("horario", "abren", "cierran", "atienden"),
    }

    LABELS = tuple(KEYWORDS)

    # Sentiment keyword groups, checked in this order
    SENTIMENT_KEYWORDS = (
        ("urgent", ("urgente", "rápido", "rapido", "ahora", "ayuda", "problema", "no funciona", "falla")),
        ("negative", ("malo", "caro", "no sirve", "molesto", "enojado", "pésimo", "pesimo", "horrible")),
        ("positive", ("gracias", "excelente", "perfecto", "genial", "bueno", "me gusta", "interesa")),
    )

    QUICK_REPLIES = {
        PURCHASE: ["Ver planes móviles", "Ver internet casa", "Hablar con asesor"],
        BUSINESS: ["Requisitos distribuidor", "Comisiones", "Contactar asesor B2B"],
        SUPPORT: ["Problemas de señal", "Configurar APN", "Agendar visita"],
        CONTACT: ["WhatsApp Tuxtla", "WhatsApp Tapachula", "Ver ubicaciones"],
    }
    DEFAULT_QUICK_REPLIES = ["Ver planes", "Ubicaciones", "Hablar con asesor"]

    def classify(self, text: Optional[str]) -> List[str]:
        """
        Return every label whose keyword list has a match in ``text``.

        Args:
            text: User message; empty or None yields no labels

        Returns:
            Matching labels in table order, without duplicates
        """
        if not text:
            return []

        lowered = text.lower()
        labels = [
            label for label, keywords in self.KEYWORDS.items()
            if any(keyword in lowered for keyword in keywords)
        ]
        logger.debug(f"Intent labels {labels} for message of {len(text)} chars")
        return labels

    def detect_sentiment(self, text: Optional[str]) -> str:
        """Coarse sentiment: urgent, negative, positive or neutral."""
        if not text:
            return "neutral"

        lowered = text.lower()
        for sentiment, keywords in self.SENTIMENT_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return sentiment
        return "neutral"

    def quick_replies(self, intents: Sequence[str]) -> List[str]:
        """Suggested follow-up buttons for the first intent that has any."""
        for label in (self.PURCHASE, self.BUSINESS, self.SUPPORT, self.CONTACT):
            if label in intents:
                return list(self.QUICK_REPLIES[label])
        return list(self.DEFAULT_QUICK_REPLIES)
