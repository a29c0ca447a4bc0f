from __future__ import annotations

import asyncio

import pytest

from conftest import ComputationSpy, FakeClock, FakeFetcher, FakeLLM
from intelligence.cluster_synthesizer import ClusterSynthesizer
from intelligence.source_summarizer import SourceSummarizer
from orchestrator import WorkflowCoordinator, workflow_cache_key
from aggregator import normalize_sources
from storage import CacheState, TTLCache
from utils.exceptions import ConfigurationError, NoValidInputError, UpstreamFetchError


BBC = {"name": "BBC", "url": "https://bbc.test"}
REDDIT = {"name": "Reddit", "url": "https://reddit.test"}
NPR = {"name": "NPR", "url": "https://npr.test"}


def _coordinator(fetcher: FakeFetcher, llm: FakeLLM, clock: FakeClock) -> WorkflowCoordinator:
    summarizer = SourceSummarizer(fetcher, llm, cache=TTLCache(ttl=600, clock=clock))
    return WorkflowCoordinator(
        summarizer=summarizer,
        synthesizer=ClusterSynthesizer(llm),
        cache=TTLCache(ttl=3600, clock=clock),
    )


def test_cache_key_ignores_order_and_name_case() -> None:
    a = normalize_sources([BBC, NPR])
    b = normalize_sources([{"name": "npr", "url": "https://npr.test"}, BBC])

    assert workflow_cache_key(a, "en") == workflow_cache_key(b, "en")
    assert workflow_cache_key(a, "en") != workflow_cache_key(a, "de")
    assert workflow_cache_key(a, None) != workflow_cache_key(normalize_sources([BBC]), None)


@pytest.mark.asyncio
async def test_partial_failure_still_clusters(clock: FakeClock) -> None:
    fetcher = FakeFetcher(
        {
            BBC["url"]: "bbc front page",
            REDDIT["url"]: UpstreamFetchError("Source fetch timed out after 10s.", url=REDDIT["url"]),
        }
    )
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)

    result = await coordinator.get_workflow([BBC, REDDIT])

    assert result.meta.usable_count == 1
    assert result.meta.failed_count == 1
    assert result.meta.total_sources == 2
    assert result.clustered
    assert [s.source_name for s in result.source_summaries] == ["BBC", "Reddit"]
    assert result.source_summaries[1].error
    assert result.cache.hit is False
    assert result.cache.stale is False
    assert result.cache.ttl_ms == 3_600_000
    assert len(llm.cluster_calls()) == 1
    _, cluster_user = llm.cluster_calls()[0]
    assert "Reddit" not in cluster_user


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_computation(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc", NPR["url"]: "npr"}, delays={BBC["url"]: 0.05})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    first, second = await asyncio.gather(
        coordinator.get_workflow([BBC, NPR], "en"),
        coordinator.get_workflow([NPR, BBC], "EN"),
    )

    assert spy.count == 1
    assert len(fetcher.calls) == 2
    assert len(llm.summary_calls()) == 2
    assert len(llm.cluster_calls()) == 1
    assert first.clustered == second.clustered
    assert first.cache.hit is False
    assert second.cache.hit is False


@pytest.mark.asyncio
async def test_state_reports_computing_while_in_flight(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"}, delays={BBC["url"]: 0.05})
    coordinator = _coordinator(fetcher, FakeLLM(), clock)

    assert coordinator.cache_state([BBC]) == CacheState.ABSENT
    task = asyncio.ensure_future(coordinator.get_workflow([BBC]))
    await asyncio.sleep(0.01)
    assert coordinator.cache_state([BBC]) == CacheState.COMPUTING

    await task
    assert coordinator.cache_state([BBC]) == CacheState.FRESH
    clock.advance(3600)
    assert coordinator.cache_state([BBC]) == CacheState.STALE


@pytest.mark.asyncio
async def test_fresh_hit_skips_computation(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    first = await coordinator.get_workflow([BBC])
    clock.advance(120)
    second = await coordinator.get_workflow([BBC])

    assert spy.count == 1
    assert second.cache.hit is True
    assert second.cache.stale is False
    assert second.cache.age_ms == 120_000
    assert second.clustered == first.clustered
    assert second.generated_at == first.generated_at


@pytest.mark.asyncio
async def test_expired_entry_is_recomputed_and_reported_stale(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    await coordinator.get_workflow([BBC])
    clock.advance(3600)
    refreshed = await coordinator.get_workflow([BBC])

    assert spy.count == 2
    assert refreshed.cache.hit is False
    assert refreshed.cache.stale is True
    assert refreshed.cache.age_ms == 0
    # summary cache expired too, so the page was fetched again
    assert len(fetcher.calls) == 2


@pytest.mark.asyncio
async def test_force_refresh_bypasses_fresh_entry(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    await coordinator.get_workflow([BBC])
    refreshed = await coordinator.get_workflow([BBC], force_refresh=True)

    assert spy.count == 2
    assert refreshed.cache.hit is False
    assert refreshed.cache.stale is False
    # per-source summary still served from its own cache
    assert len(fetcher.calls) == 1
    assert len(llm.cluster_calls()) == 2


@pytest.mark.asyncio
async def test_failed_computation_is_not_cached(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: UpstreamFetchError("Source fetch failed.", url=BBC["url"])})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    with pytest.raises(NoValidInputError) as exc_info:
        await coordinator.get_workflow([BBC])
    assert exc_info.value.message == "All sources failed to load."
    assert coordinator.cache_state([BBC]) == CacheState.ABSENT

    fetcher.pages[BBC["url"]] = "bbc recovered"
    result = await coordinator.get_workflow([BBC])
    assert result.meta.usable_count == 1
    assert spy.count == 2


@pytest.mark.asyncio
async def test_concurrent_waiters_all_see_the_failure(clock: FakeClock) -> None:
    fetcher = FakeFetcher({}, delays={BBC["url"]: 0.02})
    coordinator = _coordinator(fetcher, FakeLLM(), clock)
    spy = ComputationSpy(coordinator)

    outcomes = await asyncio.gather(
        coordinator.get_workflow([BBC]),
        coordinator.get_workflow([BBC]),
        return_exceptions=True,
    )

    assert all(isinstance(o, NoValidInputError) for o in outcomes)
    assert spy.count == 1
    assert coordinator.cache_state([BBC]) == CacheState.ABSENT


@pytest.mark.asyncio
async def test_all_hidden_sources_raise_no_valid_input(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "Access denied"})
    llm = FakeLLM(responder=lambda system, user: "UNUSABLE_SOURCE: access denied")
    coordinator = _coordinator(fetcher, llm, clock)

    with pytest.raises(NoValidInputError) as exc_info:
        await coordinator.get_workflow([BBC])

    assert exc_info.value.message == "No usable source summaries were produced."
    assert llm.cluster_calls() == []


@pytest.mark.asyncio
async def test_summarize_and_cluster_bypasses_workflow_cache(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)

    result = await coordinator.summarize_and_cluster([BBC])

    assert result.meta.usable_count == 1
    assert coordinator.cache.size() == 0


@pytest.mark.asyncio
async def test_force_refresh_joins_in_flight_computation(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"}, delays={BBC["url"]: 0.05})
    llm = FakeLLM()
    coordinator = _coordinator(fetcher, llm, clock)
    spy = ComputationSpy(coordinator)

    plain, forced = await asyncio.gather(
        coordinator.get_workflow([BBC]),
        coordinator.get_workflow([BBC], force_refresh=True),
    )

    assert spy.count == 1
    assert len(fetcher.calls) == 1
    assert len(llm.cluster_calls()) == 1
    assert plain.clustered == forced.clustered
    assert forced.cache.hit is False


@pytest.mark.asyncio
async def test_joiner_over_expired_entry_reports_hit_and_stale(clock: FakeClock) -> None:
    fetcher = FakeFetcher({BBC["url"]: "bbc"}, delays={BBC["url"]: 0.05})
    coordinator = _coordinator(fetcher, FakeLLM(), clock)
    spy = ComputationSpy(coordinator)

    await coordinator.get_workflow([BBC])
    clock.advance(3600)

    starter, joiner = await asyncio.gather(
        coordinator.get_workflow([BBC]),
        coordinator.get_workflow([BBC]),
    )

    assert spy.count == 2
    assert (starter.cache.hit, starter.cache.stale) == (False, True)
    assert (joiner.cache.hit, joiner.cache.stale) == (True, True)
    assert joiner.cache.age_ms == 0


@pytest.mark.asyncio
async def test_missing_model_configuration_propagates(clock: FakeClock) -> None:
    def unconfigured(system: str, user: str) -> str:
        raise ConfigurationError("AI service is not configured.")

    fetcher = FakeFetcher({BBC["url"]: "bbc", NPR["url"]: "npr"})
    coordinator = _coordinator(fetcher, FakeLLM(responder=unconfigured), clock)

    with pytest.raises(ConfigurationError) as exc_info:
        await coordinator.get_workflow([BBC, NPR])

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "AI service is not configured."
    assert coordinator.cache_state([BBC, NPR]) == CacheState.ABSENT
