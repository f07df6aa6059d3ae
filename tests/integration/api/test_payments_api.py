"""Integration tests for the pawaPay callback endpoint"""

import pytest
from httpx import AsyncClient
from sqlmodel import select

from src.domain.business import Business
from src.domain.payment import Payment
from tests.fixtures.signing import TEST_WEBHOOK_SECRET, callback_body, signed_headers

CALLBACK_PATH = "/api/v1/payments/pawapay/callback"
CALLBACK_URL = f"http://test{CALLBACK_PATH}"


def signed(body: bytes) -> dict:
    return signed_headers(body, secret=TEST_WEBHOOK_SECRET, url=CALLBACK_URL)


async def post_callback(client: AsyncClient, body: bytes, headers: dict):
    return await client.post(CALLBACK_PATH, content=body, headers=headers)


class TestPawapayCallback:
    @pytest.mark.asyncio
    async def test_signed_success_credits_business(self, client: AsyncClient, db_session):
        # Arrange
        body = callback_body()

        # Act
        response = await post_callback(client, body, signed(body))

        # Assert
        assert response.status_code == 200
        assert response.text == "OK"

        business = (
            await db_session.execute(
                select(Business).where(Business.id == "biz_1").execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert business.credits_total == 20

    @pytest.mark.asyncio
    async def test_duplicate_delivery_is_acknowledged(self, client: AsyncClient):
        # Arrange
        body = callback_body()

        # Act
        first = await post_callback(client, body, signed(body))
        second = await post_callback(client, body, signed(body))

        # Assert
        assert first.status_code == 200
        assert second.status_code == 200
        assert second.text == "OK"

    @pytest.mark.asyncio
    async def test_tampered_body_rejected(self, client: AsyncClient, db_session):
        # Arrange
        headers = signed(callback_body())
        tampered = callback_body(value="300.00")

        # Act
        response = await post_callback(client, tampered, headers)

        # Assert
        assert response.status_code == 400
        assert response.text == "Invalid Content-Digest"

        payment = (
            await db_session.execute(
                select(Payment).where(Payment.deposit_id == "dep-1").execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert payment.status == "PENDING"

    @pytest.mark.asyncio
    async def test_unsigned_rejected(self, client: AsyncClient):
        # Act
        response = await post_callback(client, callback_body(), {"content-type": "application/json"})

        # Assert
        assert response.status_code == 400
        assert response.text == "Missing Signature"

    @pytest.mark.asyncio
    async def test_unknown_deposit(self, client: AsyncClient):
        # Arrange
        body = callback_body(deposit_id="dep-unknown")

        # Act
        response = await post_callback(client, body, signed(body))

        # Assert
        assert response.status_code == 400
        assert response.text == "Unknown depositId"

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient):
        # Arrange
        body = b'{"depositId": "dep-1"}'

        # Act
        response = await post_callback(client, body, signed(body))

        # Assert
        assert response.status_code == 400
        assert response.text == "Missing fields"

    @pytest.mark.asyncio
    async def test_amount_mismatch(self, client: AsyncClient):
        # Arrange
        body = callback_body(value="2.50")

        # Act
        response = await post_callback(client, body, signed(body))

        # Assert
        assert response.status_code == 400
        assert response.text == "Amount mismatch"

    @pytest.mark.asyncio
    async def test_failure_status_acknowledged(self, client: AsyncClient):
        # Arrange
        body = callback_body(status="FAILED")

        # Act
        response = await post_callback(client, body, signed(body))

        # Assert
        assert response.status_code == 200
        assert response.text == "OK"
