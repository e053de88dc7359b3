"""Unit tests for system prompt assembly."""
import sys
sys.path.insert(0, 'backend')

from datetime import datetime

import pytest

from models.knowledge import KnowledgeSnapshot, Plan, PlanCatalog, Promotion
from services.prompt_builder import (
    NO_PLANS_PLACEHOLDER,
    NO_PROMOTIONS_PLACEHOLDER,
    build_system_prompt,
    contextual_greeting,
    format_home_internet_line,
    format_mobile_plan_line,
)


def make_snapshot():
    return KnowledgeSnapshot(
        promotions=[
            Promotion(title="Doble de datos", description="Duplica tus GB", label="HOT", ends_on="2024-12-31")
        ],
        personal=PlanCatalog(
            libre=[
                Plan(
                    title="Telcel Libre 3",
                    price=299.0,
                    data_allowance="3 GB",
                    minutes_and_sms="Ilimitados",
                    social_networks=["WhatsApp", "Facebook"],
                    recommended=True,
                )
            ],
            home_internet=[Plan(title="Casa 10", price=349.0, speed="10 Mbps", fair_use_policy="150 GB")],
        ),
        business=PlanCatalog(
            internet=[Plan(title="Empresa Datos", price=199.0, data_allowance="5 GB")],
            home_internet=[Plan(title="Empresa Casa", price=499.0, speed="20 Mbps")],
        ),
    )


class TestBuildSystemPrompt:
    """Prompt rendering."""

    def test_includes_plan_line(self):
        prompt = build_system_prompt(make_snapshot())
        assert "Telcel Libre 3: $299/mes - 3 GB - Ilimitados" in prompt
        assert "⭐ PLAN RECOMENDADO" in prompt
        assert "WhatsApp, Facebook" in prompt

    def test_includes_promotion(self):
        prompt = build_system_prompt(make_snapshot())
        assert "Doble de datos" in prompt
        assert "2024-12-31" in prompt
        assert NO_PROMOTIONS_PLACEHOLDER not in prompt

    def test_business_internet_merges_categories(self):
        prompt = build_system_prompt(make_snapshot())
        section = prompt.split("# INTERNET EMPRESARIAL")[1].split("#")[0]
        assert "Empresa Datos" in section
        assert "Empresa Casa" in section

    def test_empty_categories_get_placeholder(self):
        prompt = build_system_prompt(make_snapshot())
        ultra_section = prompt.split("# PLANES TELCEL ULTRA")[1].split("\n#")[0]
        assert NO_PLANS_PLACEHOLDER in ultra_section

    def test_none_renders_like_empty_snapshot(self):
        assert build_system_prompt(None) == build_system_prompt(KnowledgeSnapshot())

    def test_empty_knowledge_has_every_section(self):
        prompt = build_system_prompt(None)
        for header in (
            "# PROMOCIONES ACTIVAS",
            "# PLANES TELCEL LIBRE",
            "# PLANES TELCEL ULTRA",
            "# INTERNET MÓVIL",
            "# INTERNET EN TU CASA",
            "# PLANES EMPRESARIALES LIBRE",
            "# PLANES EMPRESARIALES ULTRA",
            "# INTERNET EMPRESARIAL",
        ):
            assert header in prompt
        assert NO_PROMOTIONS_PLACEHOLDER in prompt
        assert prompt.count(NO_PLANS_PLACEHOLDER) == 7

    def test_static_sections_always_present(self):
        prompt = build_system_prompt(None)
        assert "961 618 92 00" in prompt
        assert "962 625 58 10" in prompt
        assert "# SUCURSALES" in prompt
        assert "# PREGUNTAS FRECUENTES" in prompt
        assert "NO INVENTES PRECIOS" in prompt

    def test_deterministic(self):
        snapshot = make_snapshot()
        assert build_system_prompt(snapshot) == build_system_prompt(snapshot)


class TestLineFormatters:
    """Single-entry rendering."""

    def test_mobile_plan_without_price(self):
        line = format_mobile_plan_line(Plan(title="Sin precio", price=None, data_allowance="1 GB"))
        assert "precio no disponible" in line
        assert "Min/SMS ilimitados" in line

    @pytest.mark.parametrize("price,label", [
        (299.0, "$299"),
        (349.5, "$349.5"),
        (1234567.5, "$1234567.5"),
        (None, "precio no disponible"),
    ])
    def test_price_label_is_verbatim(self, price, label):
        assert Plan(title="Plan", price=price).price_label == label

    def test_large_price_in_prompt(self):
        snapshot = KnowledgeSnapshot(personal=PlanCatalog(libre=[Plan(title="Corporativo", price=1234567.5)]))
        assert "Corporativo: $1234567.5/mes" in build_system_prompt(snapshot)

    def test_home_internet_line(self):
        line = format_home_internet_line(Plan(title="Casa 10", price=349.0, speed="10 Mbps", fair_use_policy="150 GB"))
        assert line == "- Casa 10: $349/mes - 10 Mbps - Política de uso justo: 150 GB"


class TestContextualGreeting:
    """Time-of-day greeting."""

    def test_morning(self):
        assert contextual_greeting(datetime(2024, 1, 1, 9)) == "¡Buenos días! ☀️"

    def test_afternoon(self):
        assert contextual_greeting(datetime(2024, 1, 1, 15)) == "¡Buenas tardes! 👋"

    def test_night(self):
        assert contextual_greeting(datetime(2024, 1, 1, 22)) == "¡Buenas noches! 🌙"
        assert contextual_greeting(datetime(2024, 1, 1, 3)) == "¡Buenas noches! 🌙"
