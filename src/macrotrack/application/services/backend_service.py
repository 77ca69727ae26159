"""Backend service - typed wrappers for the MacroTracker API endpoints.

Hey future me - keep this THIN! No caching, no persistence, no retries. Each method names one
endpoint, shapes its body, and lets the coordinator do auth, refresh and error mapping.
Responses come back as plain dicts/lists (the backend owns their shape).
"""

import logging
from typing import Any

from macrotrack.application.services.request_coordinator import (
    RequestCoordinator,
    RequestOptions,
)
from macrotrack.domain.exceptions import BackendError

logger = logging.getLogger(__name__)

INVALID_GRAMS_MESSAGE = "The server returned an invalid gram estimate."

# Fields /users/update-compliance accepts (ISO-8601 timestamps, plus the ToS version).
COMPLIANCE_FIELDS = frozenset(
    {
        "tos_agreed_at",
        "tos_version",
        "consent_health_data_at",
        "consent_data_transfer_at",
        "acknowledged_not_medical_device_at",
        "agreed_to_human_in_the_loop_at",
    }
)


def _without_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


class BackendService:
    """Domain calls of the MacroTracker backend."""

    def __init__(self, coordinator: RequestCoordinator) -> None:
        self._coordinator = coordinator

    # --- app (no session needed) ---

    async def get_app_config(self) -> dict[str, Any]:
        """Current app version and terms-of-service version."""
        return await self._coordinator.get("/app/version", needs_auth=False)

    async def get_app_costs(self) -> dict[str, Any]:
        """Coin cost of each AI feature."""
        return await self._coordinator.get("/app/costs", needs_auth=False)

    # --- user ---

    async def get_user_status(self) -> dict[str, Any]:
        return await self._coordinator.get("/users/status")

    async def resend_verification_email(self) -> dict[str, Any]:
        return await self._coordinator.post("/users/resend-verification-email")

    async def start_reward_ad_process(self) -> dict[str, Any]:
        """Start a rewarded-ad flow; the response carries the nonce to hand to the ad SDK."""
        return await self._coordinator.post("/users/reward-ad-start")

    async def delete_account(self, password: str) -> None:
        """Permanently delete the current account (password re-confirmation)."""
        await self._coordinator.request(
            "/users/me", RequestOptions("DELETE", json={"password": password})
        )

    async def update_compliance(self, **timestamps: str | None) -> dict[str, Any]:
        """Record consent/terms timestamps. Unset (None) fields are not sent.

        Raises:
            ValueError: Unknown field name
        """
        unknown = set(timestamps) - COMPLIANCE_FIELDS
        if unknown:
            raise ValueError(f"Unknown compliance fields: {', '.join(sorted(unknown))}")
        return await self._coordinator.post(
            "/users/update-compliance", json=_without_none(timestamps)
        )

    # --- AI estimates ---

    async def get_macros_for_recipe(self, food_name: str, ingredients: str) -> dict[str, Any]:
        return await self._coordinator.post(
            "/ai/macros_recipe", json={"food_name": food_name, "ingredients": ingredients}
        )

    async def estimate_grams(self, food_name: str, quantity_description: str) -> float:
        """Turn "two slices" style descriptions into grams.

        Raises:
            BackendError: (500) The response has no numeric "grams"
        """
        payload = await self._coordinator.post(
            "/ai/grams_natural_language",
            json={"food_name": food_name, "quantity_description": quantity_description},
        )
        grams = payload.get("grams") if isinstance(payload, dict) else None
        # bool is an int subclass, and "true grams" is not a weight.
        if isinstance(grams, bool) or not isinstance(grams, (int, float)):
            logger.warning("Gram estimate response had no numeric 'grams': %r", payload)
            raise BackendError(INVALID_GRAMS_MESSAGE, status_code=500)
        return float(grams)

    async def get_macros_for_text(self, text: str) -> list[dict[str, Any]]:
        """Estimate every food item mentioned in free text."""
        return await self._coordinator.post("/ai/macros_text_multiple", json={"text": text})

    async def get_macros_for_image(
        self,
        image_b64: str,
        mime_type: str,
        multiple: bool = False,
    ) -> Any:
        """Estimate macros from one photo.

        Args:
            image_b64: Base64-encoded image bytes
            mime_type: e.g. "image/jpeg"
            multiple: Detect every item on the plate (list) instead of one dish (dict)
        """
        endpoint = "/ai/macros_image_multiple" if multiple else "/ai/macros_image_single"
        return await self._coordinator.post(
            endpoint, json={"image_base64": image_b64, "mime_type": mime_type}
        )

    async def get_macros_for_images(self, images: list[dict[str, str]]) -> list[dict[str, Any]]:
        """Batch variant; each image is {"image_base64": ..., "mime_type": ...}."""
        return await self._coordinator.post(
            "/ai/macros_image_multiple_batch", json={"images": images}
        )

    # --- payments ---

    async def verify_purchase(
        self,
        platform: str,
        product_id: str,
        transaction_id: str,
        purchase_token: str | None = None,
        receipt_data: str | None = None,
    ) -> dict[str, Any]:
        """Verify a store purchase and credit the coins.

        Android sends purchase_token, iOS sends receipt_data.
        """
        return await self._coordinator.post(
            "/payments/verify-purchase",
            json=_without_none(
                {
                    "platform": platform,
                    "product_id": product_id,
                    "transaction_id": transaction_id,
                    "purchase_token": purchase_token,
                    "receipt_data": receipt_data,
                }
            ),
        )
