"""Service factory: builds clients and services from configuration."""

from dataclasses import dataclass

from src.clients.elasticsearch import ElasticsearchCache
from src.clients.gemini import GeminiModel
from src.clients.interpreter import IngredientInterpreter
from src.clients.mealdb import MealDBClient
from src.pipeline.planner import PlanOrchestrator
from src.services.fridge_run import FridgeRunService
from src.services.health import HealthService
from src.utils.config import Config, config
from src.utils.logger import logger


@dataclass
class Services:
    model: GeminiModel
    catalog: MealDBClient
    cache: ElasticsearchCache
    interpreter: IngredientInterpreter
    fridge_run: FridgeRunService
    health: HealthService


def initialize_services(cfg: Config = config) -> Services:
    """Wire every collaborator from cfg.

    Args:
        cfg: Validated configuration (defaults to the module-level config).

    Returns:
        Services bundle shared by the HTTP app and the query runner.
    """
    logger.info("Step 1/3: Configuring upstream clients...")
    model = GeminiModel(
        api_key=cfg.GEMINI_API_KEY,
        model=cfg.GEMINI_MODEL,
        temperature=cfg.TEMPERATURE,
        thinking_budget=cfg.THINKING_BUDGET,
        timeout_seconds=cfg.MODEL_TIMEOUT_SECONDS,
    )
    catalog = MealDBClient(cfg.MEALDB_URL, timeout_seconds=cfg.CATALOG_TIMEOUT_SECONDS)
    cache = ElasticsearchCache(cfg.ES_URL, cfg.ES_INDEX, timeout_seconds=cfg.CACHE_TIMEOUT_SECONDS)
    logger.info(f"✓ Model: {cfg.GEMINI_MODEL} | Catalog: {cfg.MEALDB_URL} | Cache: {cfg.ES_URL}/{cfg.ES_INDEX}")

    logger.info("Step 2/3: Configuring interpreter and planner...")
    interpreter = IngredientInterpreter(model, max_tokens=cfg.INTERPRET_MAX_TOKENS)
    planner = PlanOrchestrator(
        model,
        rank_max_tokens=cfg.RANK_MAX_TOKENS,
        plan_max_tokens=cfg.PLAN_MAX_TOKENS,
        rank_context_size=cfg.RANK_CONTEXT_SIZE,
    )
    logger.info("✓ Interpreter and planner configured")

    logger.info("Step 3/3: Configuring services...")
    fridge_run = FridgeRunService(
        interpreter=interpreter,
        catalog=catalog,
        cache=cache,
        planner=planner,
        default_max=cfg.DEFAULT_MAX_CANDIDATES,
        max_limit=cfg.MAX_CANDIDATES_LIMIT,
        search_size=cfg.SEARCH_SIZE,
        max_hits=cfg.MAX_HITS,
    )
    health = HealthService(cache=cache, model=model, catalog=catalog)
    logger.info("✓ Services ready")

    return Services(
        model=model,
        catalog=catalog,
        cache=cache,
        interpreter=interpreter,
        fridge_run=fridge_run,
        health=health,
    )
