"""
Recipe data provider client.

GET {base}/api/recipes/single_recipe/{id}   -> recipe object
GET {base}/api/categories/recipes/{id}      -> [{category_name}, ...]
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, List, Optional

import aiohttp
from pydantic import ValidationError

from logging_setup import get_logger, Component
from narration.errors import RecipeFetchError
from .models import Recipe, RecipeCategory, RecipeDetail


logger = get_logger(Component.RECIPES)


class RecipeClient:
    def __init__(self, base_url: str, *, timeout_seconds: float = 10.0):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _get_json(self, path: str) -> Any:
        endpoint = f"{self.base_url}{path}"
        start_ts = time.time()
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as s:
                async with s.get(endpoint) as resp:
                    if resp.status >= 400:
                        logger.warning(
                            "Recipe provider returned an error",
                            endpoint=endpoint,
                            status=resp.status,
                            latency_ms=int((time.time() - start_ts) * 1000),
                        )
                        raise RecipeFetchError(
                            f"GET {path} failed with status {resp.status}",
                            status=resp.status,
                        )
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "Recipe provider request failed",
                endpoint=endpoint,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int((time.time() - start_ts) * 1000),
            )
            raise RecipeFetchError(f"GET {path} failed: {type(e).__name__}") from e

        logger.debug(
            "Recipe provider response",
            endpoint=endpoint,
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        return data

    async def fetch_recipe(self, recipe_id: int | str) -> Recipe:
        data = await self._get_json(f"/api/recipes/single_recipe/{recipe_id}")
        try:
            return Recipe.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid recipe payload", recipe_id=str(recipe_id), error_count=e.error_count())
            raise RecipeFetchError(f"Invalid recipe payload for {recipe_id}") from e

    async def fetch_categories(self, recipe_id: int | str) -> List[str]:
        data = await self._get_json(f"/api/categories/recipes/{recipe_id}")
        if not isinstance(data, list):
            raise RecipeFetchError(f"Invalid category payload for {recipe_id}")
        try:
            return [RecipeCategory.model_validate(item).category_name for item in data]
        except ValidationError as e:
            raise RecipeFetchError(f"Invalid category payload for {recipe_id}") from e

    async def fetch_detail(self, recipe_id: int | str) -> RecipeDetail:
        """Fetch a recipe and its categories concurrently."""
        recipe, categories = await asyncio.gather(
            self.fetch_recipe(recipe_id),
            self.fetch_categories(recipe_id),
        )
        return RecipeDetail(recipe=recipe, categories=categories)


def make_client(base_url: Optional[str], timeout_seconds: float = 10.0) -> Optional[RecipeClient]:
    if not base_url:
        logger.warning("RECIPE_API_URL not set; recipe loading disabled")
        return None
    return RecipeClient(base_url, timeout_seconds=timeout_seconds)
