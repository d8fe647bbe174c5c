"""Unit tests for the catalog, cache and model clients (transport mocked)."""

import json
import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.clients.elasticsearch import INDEX_MAPPING, ElasticsearchCache
from src.clients.gemini import GeminiModel
from src.clients.mealdb import MealDBClient
from src.utils.config import config
from src.utils.errors import CacheStoreError, CatalogError, ModelError
from tests.helpers import make_doc


MEALDB_URL = "https://www.themealdb.com/api/json/v1/1"


class TestMealDBClient:
    """Test request building and payload handling."""

    def test_requires_base_url(self):
        with pytest.raises(ValueError, match="MEALDB_URL"):
            MealDBClient("")

    @pytest.mark.asyncio
    async def test_filter_normalizes_ingredient(self):
        client = MealDBClient(MEALDB_URL + "/")
        payload = {"meals": [{"idMeal": "52940", "strMeal": "Lemon Chicken", "strMealThumb": "x"}]}

        with patch.object(client, "_get_json", AsyncMock(return_value=payload)) as mock_get:
            meals = await client.filter_by_ingredient(" Chicken Breast ")

        mock_get.assert_awaited_once_with("filter.php", {"i": "chicken_breast"})
        assert [meal.id_meal for meal in meals] == ["52940"]
        assert client.base_url == MEALDB_URL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"meals": None}, {"meals": "no data found"}])
    async def test_filter_no_results(self, payload):
        client = MealDBClient(MEALDB_URL)
        with patch.object(client, "_get_json", AsyncMock(return_value=payload)):
            assert await client.filter_by_ingredient("unobtainium") == []

    @pytest.mark.asyncio
    async def test_filter_malformed_payload(self):
        client = MealDBClient(MEALDB_URL)
        with patch.object(client, "_get_json", AsyncMock(return_value=["not", "an", "object"])):
            with pytest.raises(CatalogError, match="not a JSON object"):
                await client.filter_by_ingredient("chicken")

    @pytest.mark.asyncio
    async def test_lookup(self):
        client = MealDBClient(MEALDB_URL)
        payload = {"meals": [{"idMeal": "52940", "strMeal": "Lemon Chicken", "strIngredient1": "Chicken"}]}

        with patch.object(client, "_get_json", AsyncMock(return_value=payload)) as mock_get:
            meal = await client.lookup("52940")

        mock_get.assert_awaited_once_with("lookup.php", {"i": "52940"})
        assert meal.ingredient_pairs() == [("chicken", "")]

    @pytest.mark.asyncio
    async def test_lookup_unknown_id(self):
        client = MealDBClient(MEALDB_URL)
        with patch.object(client, "_get_json", AsyncMock(return_value={"meals": None})):
            with pytest.raises(CatalogError, match="Meal not found: 1"):
                await client.lookup("1")

    @pytest.mark.asyncio
    async def test_ping(self):
        client = MealDBClient(MEALDB_URL)
        with patch.object(client, "_get_json", AsyncMock(return_value={"meals": []})):
            assert await client.ping() is True
        with patch.object(client, "_get_json", AsyncMock(side_effect=CatalogError("down"))):
            assert await client.ping() is False


class TestElasticsearchCache:
    """Test REST request shapes and error mapping."""

    def make_cache(self):
        return ElasticsearchCache("http://localhost:9200/", "meals-lab")

    def test_requires_index(self):
        with pytest.raises(ValueError, match="ES_INDEX"):
            ElasticsearchCache("http://localhost:9200", "")

    @pytest.mark.asyncio
    async def test_ensure_index_creates_when_missing(self):
        cache = self.make_cache()
        mock_request = AsyncMock(side_effect=[(404, None), (200, {"acknowledged": True})])

        with patch.object(cache, "_request", mock_request):
            assert await cache.ensure_index() is True

        put_call = mock_request.await_args_list[1]
        assert put_call.args[:2] == ("PUT", "meals-lab")
        assert json.loads(put_call.args[2]) == INDEX_MAPPING

    @pytest.mark.asyncio
    async def test_ensure_index_existing(self):
        cache = self.make_cache()
        with patch.object(cache, "_request", AsyncMock(return_value=(200, None))) as mock_request:
            assert await cache.ensure_index() is False
        assert mock_request.await_count == 1

    @pytest.mark.asyncio
    async def test_exists_batch(self):
        cache = self.make_cache()
        reply = {"docs": [{"_id": "1", "found": True}, {"_id": "2", "found": False}]}

        with patch.object(cache, "_request", AsyncMock(return_value=(200, reply))) as mock_request:
            found = await cache.exists_batch(["1", "2"])

        assert found == {"1": True, "2": False}
        method, path, body = mock_request.await_args.args
        assert (method, path) == ("POST", "meals-lab/_mget?_source=false")
        assert json.loads(body) == {"ids": ["1", "2"]}

    @pytest.mark.asyncio
    async def test_exists_batch_http_error(self):
        cache = self.make_cache()
        reply = {"error": {"type": "index_not_found_exception", "reason": "no such index"}}
        with patch.object(cache, "_request", AsyncMock(return_value=(404, reply))):
            with pytest.raises(CacheStoreError, match="no such index"):
                await cache.exists_batch(["1"])

    @pytest.mark.asyncio
    async def test_upsert_batch_ndjson(self):
        cache = self.make_cache()
        docs = [make_doc("1", "A", ["rice"]), make_doc("2", "B", ["egg"])]

        with patch.object(cache, "_request", AsyncMock(return_value=(200, {"errors": False, "items": []}))) as mock_request:
            assert await cache.upsert_batch(docs) == 2

        method, path, body = mock_request.await_args.args
        assert (method, path) == ("POST", "_bulk?refresh=wait_for")
        assert mock_request.await_args.kwargs["content_type"] == "application/x-ndjson"
        lines = body.strip().split("\n")
        assert len(lines) == 4
        assert json.loads(lines[0]) == {"index": {"_index": "meals-lab", "_id": "1"}}
        assert json.loads(lines[1])["ingredientCount"] == 1

    @pytest.mark.asyncio
    async def test_upsert_batch_item_errors(self):
        cache = self.make_cache()
        reply = {
            "errors": True,
            "items": [
                {"index": {"_id": "1", "status": 201}},
                {"index": {"_id": "2", "error": {"type": "mapper_parsing_exception"}}},
            ],
        }
        with patch.object(cache, "_request", AsyncMock(return_value=(200, reply))):
            with pytest.raises(CacheStoreError, match=r"\['2'\]"):
                await cache.upsert_batch([make_doc("1", "A", ["rice"]), make_doc("2", "B", ["egg"])])

    @pytest.mark.asyncio
    async def test_search_by_ingredients(self):
        cache = self.make_cache()
        good = make_doc("1", "A", ["rice"]).to_wire()
        reply = {"hits": {"hits": [{"_id": "1", "_source": good}, {"_id": "2", "_source": {"id": "2"}}]}}

        with patch.object(cache, "_request", AsyncMock(return_value=(200, reply))) as mock_request:
            documents = await cache.search_by_ingredients(["rice", "egg", "rice"], 25)

        assert [doc.id for doc in documents] == ["1"]
        query = json.loads(mock_request.await_args.args[2])
        assert query["size"] == 25
        assert query["query"]["bool"]["minimum_should_match"] == 1
        assert query["query"]["bool"]["should"] == [
            {"term": {"ingredients": "rice"}},
            {"term": {"ingredients": "egg"}},
        ]

    @pytest.mark.asyncio
    async def test_ping(self):
        cache = self.make_cache()
        with patch.object(cache, "_request", AsyncMock(side_effect=CacheStoreError("refused"))):
            assert await cache.ping() is False
        with patch.object(cache, "_request", AsyncMock(return_value=(200, {"version": {}}))):
            assert await cache.ping() is True


class TestGeminiModel:
    """Test the model wrapper with a mocked genai client."""

    def make_model(self, client, **kwargs):
        return GeminiModel(api_key="test-key", model="gemini-2.5-flash", client=client, **kwargs)

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiModel(api_key="", model="gemini-2.5-flash", client=MagicMock())

    @pytest.mark.asyncio
    async def test_generate(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text='{"ok": true}')
        model = self.make_model(client)

        text = await model.generate("prompt", 320)

        assert text == '{"ok": true}'
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].max_output_tokens == 320
        assert kwargs["config"].temperature == 0.0
        assert kwargs["config"].thinking_config.thinking_budget == 0
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_configured_model_disables_thinking(self):
        """With the configured defaults, thinking cannot consume the JSON output budget."""
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text='{"ingredients": []}')
        model = GeminiModel(
            api_key="test-key",
            model=config.GEMINI_MODEL,
            temperature=config.TEMPERATURE,
            thinking_budget=config.THINKING_BUDGET,
            client=client,
        )

        await model.generate("prompt", config.INTERPRET_MAX_TOKENS)

        sent = client.models.generate_content.call_args.kwargs["config"]
        assert sent.max_output_tokens == 120
        assert sent.thinking_config is not None
        assert sent.thinking_config.thinking_budget == 0

    @pytest.mark.asyncio
    async def test_thinking_left_to_model_default(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text="{}")

        await self.make_model(client, thinking_budget=None).generate("prompt", 600)

        assert client.models.generate_content.call_args.kwargs["config"].thinking_config is None

    @pytest.mark.asyncio
    async def test_empty_response(self):
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text=None)
        with pytest.raises(ModelError, match="empty"):
            await self.make_model(client).generate("prompt", 120)

    @pytest.mark.asyncio
    async def test_api_failure(self):
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")
        with pytest.raises(ModelError, match="RESOURCE_EXHAUSTED"):
            await self.make_model(client).generate("prompt", 120)

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = MagicMock()
        client.models.generate_content.side_effect = lambda **kwargs: time.sleep(0.2)
        model = self.make_model(client, timeout_seconds=0.01)

        with pytest.raises(ModelError, match="timed out"):
            await model.generate("prompt", 120)

    @pytest.mark.asyncio
    async def test_ping(self):
        client = MagicMock()
        assert await self.make_model(client).ping() is True
        client.models.get.side_effect = RuntimeError("404 model not found")
        assert await self.make_model(client).ping() is False
