"""
Test Suite for Keyword Reverification
"""

import uuid

import pytest

from conftest import FakeSearchClient, make_results
from src.collector import SearchAPIError, build_keyword_analysis
from src.database import (
    AnalysisNotFoundError,
    AnalysisStatus,
    create_analysis,
    get_analysis_results,
    get_keyword_analysis,
    store_keyword_analyses,
    transition_status,
)
from src.services import (
    AnalysisOrchestrator,
    KeywordNotInAnalysisError,
    ReverificationError,
    ReverificationService,
    run_competitive_analysis,
)
from src.services.reverification import ReverificationResult


async def completed_shop_analysis(shop_responses, fast_scheduler) -> str:
    orchestrator = AnalysisOrchestrator(client=FakeSearchClient(shop_responses), scheduler_config=fast_scheduler)
    status = await run_competitive_analysis(
        "shop.example", ["buy shoes", "running shoes"], orchestrator=orchestrator
    )
    assert status["status"] == "completed"
    return status["analysis_id"]


class TestReverificationResult:

    def test_position_change(self):
        assert ReverificationResult("k", 5, 2).position_change == 3
        assert ReverificationResult("k", 2, 5).position_change == -3
        assert ReverificationResult("k", None, 2).position_change is None

    def test_to_dict(self):
        assert ReverificationResult("k", None, 4).to_dict() == {
            "keyword": "k", "previous_position": None, "new_position": 4,
        }


@pytest.mark.usefixtures("database")
class TestReverify:
    """Refreshing one keyword of a finished analysis."""

    @pytest.mark.asyncio
    async def test_updates_keyword_in_place(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient({
            "running shoes": make_results("https://rival.com/", "https://shop.example/running"),
        })
        service = ReverificationService(client=client, retry_config=fast_retry)

        result = await service.reverify(analysis_id, "Running Shoes", "www.shop.example")

        assert result.keyword == "running shoes"
        assert result.previous_position is None
        assert result.new_position == 2
        assert client.calls == ["running shoes"]

        keywords = get_analysis_results(analysis_id)["keywords"]
        rows = [k for k in keywords if k["keyword"] == "running shoes"]
        assert len(rows) == 1
        assert rows[0]["target_domain_position"] == 2
        assert rows[0]["metadata"]["previous_position"] is None
        assert "reverified_at" in rows[0]["metadata"]
        assert len(keywords) == 2

    @pytest.mark.asyncio
    async def test_reports_previous_position(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient({
            "buy shoes": make_results("https://rival.com/", "https://a.com/", "https://shop.example/"),
        })

        result = await ReverificationService(client=client, retry_config=fast_retry).reverify(
            analysis_id, "buy shoes", "shop.example"
        )

        assert result.previous_position == 1
        assert result.new_position == 3
        assert result.position_change == -2
        assert get_keyword_analysis(analysis_id, "buy shoes")["metadata"]["previous_position"] == 1

    @pytest.mark.asyncio
    async def test_aggregates_are_left_untouched(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        before = get_analysis_results(analysis_id)

        client = FakeSearchClient({"running shoes": make_results("https://shop.example/")})
        await ReverificationService(client=client, retry_config=fast_retry).reverify(
            analysis_id, "running shoes", "shop.example"
        )

        after = get_analysis_results(analysis_id)
        assert after["competitors"] == before["competitors"]
        assert after["opportunities"] == before["opportunities"]
        assert after["overall_score"] == before["overall_score"]

    @pytest.mark.asyncio
    async def test_failed_analysis_can_be_reverified(self, fast_retry):
        analysis_id = create_analysis("shop.example")
        transition_status(analysis_id, AnalysisStatus.ANALYZING)
        store_keyword_analyses(analysis_id, [build_keyword_analysis("buy shoes", "shop.example", [])])
        transition_status(analysis_id, AnalysisStatus.FAILED)
        client = FakeSearchClient({"buy shoes": make_results("https://shop.example/")})

        result = await ReverificationService(client=client, retry_config=fast_retry).reverify(
            analysis_id, "buy shoes", "shop.example"
        )
        assert result.new_position == 1


@pytest.mark.usefixtures("database")
class TestReverifyRejections:
    """Requests that cannot be served."""

    @pytest.mark.asyncio
    async def test_unknown_analysis(self, fast_retry):
        service = ReverificationService(client=FakeSearchClient(), retry_config=fast_retry)
        with pytest.raises(AnalysisNotFoundError):
            await service.reverify(uuid.uuid4(), "buy shoes", "shop.example")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [None, AnalysisStatus.ANALYZING])
    async def test_unfinished_analysis(self, status, fast_retry):
        analysis_id = create_analysis("shop.example")
        if status is not None:
            transition_status(analysis_id, status)
        client = FakeSearchClient()

        with pytest.raises(ReverificationError):
            await ReverificationService(client=client, retry_config=fast_retry).reverify(
                analysis_id, "buy shoes", "shop.example"
            )
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_domain_mismatch(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient()

        with pytest.raises(ReverificationError, match="does not match"):
            await ReverificationService(client=client, retry_config=fast_retry).reverify(
                analysis_id, "buy shoes", "other.example"
            )
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_invalid_keyword(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)

        with pytest.raises(ReverificationError):
            await ReverificationService(client=FakeSearchClient(), retry_config=fast_retry).reverify(
                analysis_id, "a", "shop.example"
            )

    @pytest.mark.asyncio
    async def test_keyword_not_in_analysis(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient({"never submitted": make_results("https://shop.example/")})

        with pytest.raises(KeywordNotInAnalysisError):
            await ReverificationService(client=client, retry_config=fast_retry).reverify(
                analysis_id, "never submitted", "shop.example"
            )

        # Rejected before any lookup; the keyword set is unchanged
        assert client.calls == []
        keywords = [k["keyword"] for k in get_analysis_results(analysis_id)["keywords"]]
        assert sorted(keywords) == ["buy shoes", "running shoes"]
        assert get_keyword_analysis(analysis_id, "never submitted") is None

    def test_missing_keyword_is_a_reverification_error(self):
        assert issubclass(KeywordNotInAnalysisError, ReverificationError)

    @pytest.mark.asyncio
    async def test_lookup_failure_leaves_row(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient({"buy shoes": SearchAPIError("upstream 500")})

        with pytest.raises(SearchAPIError):
            await ReverificationService(client=client, retry_config=fast_retry).reverify(
                analysis_id, "buy shoes", "shop.example"
            )

        assert client.attempts("buy shoes") == 3
        assert get_keyword_analysis(analysis_id, "buy shoes")["target_domain_position"] == 1

    @pytest.mark.asyncio
    async def test_owned_client_closed_on_failure(self, shop_responses, fast_scheduler, fast_retry):
        analysis_id = await completed_shop_analysis(shop_responses, fast_scheduler)
        client = FakeSearchClient({"buy shoes": SearchAPIError("upstream 500")})

        with pytest.raises(SearchAPIError):
            await ReverificationService(client_factory=lambda: client, retry_config=fast_retry).reverify(
                analysis_id, "buy shoes", "shop.example"
            )
        assert client.closed
