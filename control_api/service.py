"""
Process-wide narration service state.

Holds at most one NarrationController (the one bound to the connected audio
client) plus the most recently loaded recipe, which is handed to every new
controller.
"""

from __future__ import annotations

from typing import Optional

from logging_setup import get_logger, Component
from narration.config import NarrationConfig, get_config
from narration.controller import NarrationController
from narration.errors import RecipeFetchError
from recipes.client import RecipeClient, make_client
from recipes.models import RecipeDetail


logger = get_logger(Component.CONTROL_API)


class NarrationService:
    def __init__(self, config: Optional[NarrationConfig] = None):
        self._config = config
        self._recipe_client: Optional[RecipeClient] = None
        self.controller: Optional[NarrationController] = None
        self.detail: Optional[RecipeDetail] = None

    @property
    def config(self) -> NarrationConfig:
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def recipe_client(self) -> Optional[RecipeClient]:
        if self._recipe_client is None:
            self._recipe_client = make_client(
                self.config.recipe_api_url,
                timeout_seconds=self.config.recipe_fetch_timeout_seconds,
            )
        return self._recipe_client

    async def load_recipe(self, recipe_id: int | str) -> RecipeDetail:
        client = self.recipe_client
        if client is None:
            raise RecipeFetchError("Recipe provider is not configured")
        detail = await client.fetch_detail(recipe_id)
        self.set_detail(detail)
        return detail

    def set_detail(self, detail: RecipeDetail) -> None:
        self.detail = detail
        if self.controller is not None:
            self.controller.load_recipe(detail)
        logger.info(
            "Recipe loaded",
            recipe=detail.recipe.name,
            categories=detail.categories,
            client_connected=self.controller is not None,
        )

    def attach(self, controller: NarrationController) -> None:
        """Bind a newly connected client's controller, replacing any previous one."""
        if self.controller is not None:
            logger.info("Replacing connected audio client")
            self.controller.close()
        self.controller = controller
        if self.detail is not None:
            controller.load_recipe(self.detail)
        controller.open()

    def detach(self, controller: NarrationController) -> None:
        if self.controller is controller:
            controller.close()
            self.controller = None

    def reset(self) -> None:
        if self.controller is not None:
            self.controller.close()
        self.controller = None
        self.detail = None
        self._recipe_client = None


# Global narration service
service = NarrationService()
