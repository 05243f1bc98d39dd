import pytest
from unittest.mock import AsyncMock
from sqlalchemy.dialects import postgresql

from app.models.classification_models import CategoryPair
from app.services.database.similarity_database_services import (
    build_best_match_query,
    compute_best_matches,
    get_category_pairs,
)
from conftest import make_rows

CATEGORIES = [
    CategoryPair(topic="cyberattack", industry="finance_blockchain"),
    CategoryPair(topic="solvency", industry="finance_blockchain"),
]


def compile_sql(query):
    return str(query.compile(dialect=postgresql.dialect()))


def test_best_match_query_is_a_single_ranked_join():
    sql = compile_sql(build_best_match_query([1, 2], CATEGORIES))

    assert sql.count("SELECT") == 2
    assert "unique_messages.embedding <=> synth_data_prod.embedding" in sql
    assert "row_number() OVER (PARTITION BY unique_messages.id, synth_data_prod.topic, synth_data_prod.industry" in sql
    window = sql.split("OVER (", 1)[1].split(") AS match_rank", 1)[0]
    assert "ORDER BY" in window and window.rstrip().endswith("synth_data_prod.id ASC")
    assert "ranked_matches.match_rank =" in sql
    assert "unique_messages.id IN" in sql
    assert "(synth_data_prod.topic, synth_data_prod.industry) IN" in sql


def test_best_match_query_without_category_filter():
    sql = compile_sql(build_best_match_query([1]))

    assert "(synth_data_prod.topic, synth_data_prod.industry) IN" not in sql
    assert "synth_data_prod.embedding IS NOT NULL" in sql


@pytest.mark.asyncio
async def test_get_category_pairs():
    db = AsyncMock()
    db.execute.return_value = make_rows(
        {"topic": "cyberattack", "industry": "finance_blockchain"},
        {"topic": "solvency", "industry": "finance_blockchain"},
    )

    pairs = await get_category_pairs(db)

    assert pairs == CATEGORIES


@pytest.mark.asyncio
async def test_compute_best_matches_maps_rows():
    db = AsyncMock()
    db.execute.return_value = make_rows(
        {"message_id": 1, "topic": "cyberattack", "industry": "finance_blockchain", "reference_id": 10, "similarity": 0.91},
        {"message_id": 1, "topic": "solvency", "industry": "finance_blockchain", "reference_id": 21, "similarity": 0.42},
    )

    scores = await compute_best_matches(db, [1], CATEGORIES)

    db.execute.assert_awaited_once()
    assert [(s.message_id, s.topic, s.reference_id) for s in scores] == [
        (1, "cyberattack", 10),
        (1, "solvency", 21),
    ]
    assert scores[0].similarity == pytest.approx(0.91)


@pytest.mark.asyncio
async def test_compute_best_matches_skips_query_without_input():
    db = AsyncMock()

    assert await compute_best_matches(db, [], CATEGORIES) == []
    assert await compute_best_matches(db, [1, 2], []) == []
    db.execute.assert_not_awaited()
