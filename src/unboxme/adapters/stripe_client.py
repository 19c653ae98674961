"""Stripe payments client over the REST API."""

from dataclasses import dataclass

import httpx

from unboxme.domain.errors import UpstreamFailure
from unboxme.services.checkout import PaymentClient, PaymentIntent


@dataclass
class HttpxStripeClient(PaymentClient):
    """Stripe client implemented with httpx."""

    secret_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, secret_key: str, base_url: str) -> "HttpxStripeClient":
        """Create a Stripe client with a managed httpx session."""
        return cls(
            secret_key=secret_key, base_url=base_url, http_client=httpx.AsyncClient()
        )

    async def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        email: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        """Create a payment intent, reusing the customer for the email."""
        customer_id = await self._ensure_customer(email, metadata)
        payload = {
            "amount": str(amount_minor),
            "currency": currency,
            "customer": customer_id,
            **_metadata_fields(metadata),
        }
        data = await self._request("POST", "/payment_intents", data=payload)
        return _parse_intent(data)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        """Fetch a payment intent by id."""
        data = await self._request("GET", f"/payment_intents/{payment_intent_id}")
        return _parse_intent(data)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _ensure_customer(self, email: str, metadata: dict[str, str]) -> str:
        existing = await self._request(
            "GET", "/customers", params={"email": email, "limit": "1"}
        )
        customers = existing.get("data") or []
        if customers:
            return str(customers[0]["id"])
        created = await self._request(
            "POST",
            "/customers",
            data={
                "email": email,
                **_metadata_fields(
                    {
                        key: value
                        for key, value in metadata.items()
                        if key in {"gift_box_title", "card_count"}
                    }
                ),
            },
        )
        return str(created["id"])

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> dict[str, object]:
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                data=data,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=15,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamFailure(f"Stripe request failed: {method} {path}") from exc
        return response.json()


def _metadata_fields(metadata: dict[str, str]) -> dict[str, str]:
    return {f"metadata[{key}]": value for key, value in metadata.items()}


def _parse_intent(data: dict[str, object]) -> PaymentIntent:
    metadata = data.get("metadata") or {}
    return PaymentIntent(
        id=str(data["id"]),
        status=str(data.get("status", "")),
        amount_minor=int(data.get("amount", 0)),
        currency=str(data.get("currency", "")),
        client_secret=data.get("client_secret"),
        metadata={str(key): str(value) for key, value in metadata.items()},
    )
