from __future__ import annotations

from storebot.application.use_cases.booking import BookingUseCase
from storebot.application.use_cases.catalog import CatalogUseCase
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.use_cases.function_executor import CALLABLE_FUNCTIONS, FunctionExecutor
from storebot.application.use_cases.leads import SubmitLeadUseCase
from storebot.application.use_cases.recommendations import RecommendationsUseCase
from storebot.infrastructure.sheets.memory_sheet_source import InMemorySheetSource

from conftest import STORE


def test_unknown_function_is_reported_not_raised(executor):
    """Test that an unknown function becomes a failed result."""
    result = executor.execute("delete_everything", {}, STORE)

    assert result.success is False
    assert result.error == "Unknown function: delete_everything"
    assert result.error_kind.value == "UnknownFunction"


def test_store_info_all_tolerates_a_failing_tab(executor, source):
    """Test that store info "all" survives one missing tab."""
    # Drop the Hours tab so only that read fails.
    source._tabs[STORE].pop("Hours")

    result = executor.execute("get_store_info", {"info_type": "all"}, STORE)

    assert result.success is True
    assert result.data["hours"] == []
    assert len(result.data["services"]) == 3
    assert len(result.data["products"]) == 2
    assert result.data["unavailable"] == ["hours"]


def test_store_info_single_type_propagates_failure(executor, source):
    """Test that a single info type reports the source failure."""
    source.unavailable = True
    result = executor.execute("get_store_info", {"info_type": "hours"}, STORE)

    assert result.success is False
    assert result.error_kind.value == "SourceUnavailable"


def test_products_category_filter_is_case_insensitive(executor):
    """Test that product categories match regardless of case."""
    result = executor.execute("get_products", {"category": "hair"}, STORE)

    assert result.success is True
    assert [p["name"] for p in result.data["products"]] == ["Shampoo"]


def test_products_empty_category_is_not_found(executor):
    """Test that an empty product category is NotFound."""
    result = executor.execute("get_products", {"category": "Garden"}, STORE)

    assert result.success is False
    assert result.error_kind.value == "NotFound"
    assert result.error == 'No products found in category "Garden"'


def test_services_query_matches_any_column(executor):
    """Test that the services query searches every column."""
    result = executor.execute("get_services", {"query": "wheel"}, STORE)
    assert [s["serviceName"] for s in result.data["services"]] == ["Beginner Pottery"]


def test_misc_data_reads_custom_tab_and_filters(executor):
    """Test that custom tabs are readable and filterable."""
    result = executor.execute("get_misc_data", {"tab_name": "faq", "query": "parking"}, STORE)

    assert result.success is True
    assert result.data["count"] == 1
    assert result.data["data"][0]["answer"] == "Street parking only"


def test_misc_data_missing_tab_is_not_found(executor):
    """Test that a missing custom tab is NotFound."""
    result = executor.execute("get_misc_data", {"tab_name": "Policies"}, STORE)
    assert result.error_kind.value == "NotFound"


def test_submit_lead_without_contact_details_returns_form(executor, source):
    """Test that a lead without name and email returns the lead form."""
    result = executor.execute("submit_lead", {}, STORE)

    assert result.success is True
    assert result.awaiting_input is True
    form = result.components[0]
    assert form["type"] == "LeadForm"
    assert [f["name"] for f in form["props"]["fields"]] == ["Name", "Email", "Phone", "Message"]
    assert result.data["missing_fields"] == ["Name", "Email"]
    assert source.rows(STORE, "Leads") == []


def test_submit_lead_appends_row_with_status_new(executor, source):
    """Test that a complete lead is written with a timestamp and status new."""
    result = executor.execute(
        "submit_lead", {"name": "Ana", "email": "ana@example.com", "message": "Call me"}, STORE
    )

    assert result.success is True
    row = source.rows(STORE, "Leads")[0]
    assert row["Name"] == "Ana"
    assert row["Email"] == "ana@example.com"
    assert row["Message"] == "Call me"
    assert row["Status"] == "new"
    assert row["Date"].startswith("2025-03-10")


def test_submit_lead_without_leads_tab_is_not_found(executor, source):
    """Test that lead capture needs a Leads tab."""
    source._tabs[STORE].pop("Leads")
    result = executor.execute("submit_lead", {"name": "Ana", "email": "ana@example.com"}, STORE)

    assert result.error_kind.value == "NotFound"
    assert "Leads" in result.error


def test_recommendations_ask_for_preferences_first(executor):
    """Test that recommendations without a goal ask for preferences."""
    result = executor.execute("get_recommendations", {}, STORE)

    assert result.awaiting_input is True
    assert result.components[0]["type"] == "PreferencesForm"


def test_recommendations_filter_by_budget_and_rank_by_goal(executor):
    """Test that the budget band filters and the goal ranks."""
    result = executor.execute(
        "get_recommendations",
        {"goal": "learn pottery wheel as a beginner", "budget": "low", "offering_type": "services"},
        STORE,
    )

    assert result.success is True
    names = [r["_name"] for r in result.data["recommendations"]]
    # Advanced Glazing (120) falls outside the low band.
    assert "Advanced Glazing" not in names
    assert names[0] == "Beginner Pottery"


def test_every_callable_function_is_dispatched(executor):
    """Test that every callable function has a handler."""
    for name in CALLABLE_FUNCTIONS:
        result = executor.execute(name, {}, STORE)
        assert result.error_kind is None or result.error_kind.value != "UnknownFunction"


class _BrokenSource(InMemorySheetSource):
    def fetch_tab(self, store_id, tab_name):
        raise RuntimeError("boom")


def test_unexpected_exception_becomes_generic_failure():
    """Test that an unexpected error is reported generically."""
    broken = DataGateway(source=_BrokenSource(), caches={}, default_cache_type="none")
    executor = FunctionExecutor(
        booking=BookingUseCase(broken),
        catalog=CatalogUseCase(broken),
        leads=SubmitLeadUseCase(broken),
        recommendations=RecommendationsUseCase(broken),
    )

    result = executor.execute("get_products", {}, STORE)
    assert result.success is False
    assert result.error == "Function execution failed"
    assert result.error_kind is None
