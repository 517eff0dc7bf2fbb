#!/usr/bin/env python3
"""
Request Signing Example for the API Gateway Python SDK

This example demonstrates SigV4 signing, unsigned pass-through, retry
policies and error handling without contacting a real API.
"""

import asyncio
import logging
from datetime import datetime, timezone

from apigateway_sdk import (
    ApiGatewayClient,
    ClientConfig,
    ConfigurationError,
    Credentials,
    HttpResponse,
    ResponseError,
    SigV4Signer,
    create_retry_policy,
)


class DemoTransport:
    """Transport answering every request locally, failing the first N attempts"""

    def __init__(self, failures=0):
        self.failures = failures
        self.calls = 0

    async def send(self, request):
        self.calls += 1
        status = 503 if self.calls <= self.failures else 200
        return HttpResponse(status_code=status, content=b'{"pets":[]}', url=request.url)

    async def close(self):
        pass


def basic_signing_example():
    """Demonstrate signing with the AWS documentation test credentials"""
    print("=== Basic Request Signing Example ===")

    credentials = Credentials(
        access_key="AKIDEXAMPLE",
        secret_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
    )
    signer = SigV4Signer(credentials, region="us-east-1", service="service")

    result = signer.sign(
        "GET",
        "/",
        {},
        {"host": "example.amazonaws.com", "x-amz-date": "20150830T123600Z"},
        None,
        "20150830T123600Z",
    )

    print("Canonical request:")
    print(result.canonical_request)
    print("\nString to sign:")
    print(result.string_to_sign)
    print(f"\nAuthorization: {result.authorization}")


def client_signing_example():
    """Demonstrate building a signed request through the client"""
    print("\n=== Client Signing Example ===")

    config = ClientConfig(
        invoke_url="https://abc123.execute-api.us-east-1.amazonaws.com/prod",
        access_key="AKIDEXAMPLE",
        secret_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        session_token="example-session-token",
        region="us-east-1",
        api_key="example-api-key",
    )
    client = ApiGatewayClient(
        config,
        transport=DemoTransport(),
        clock=lambda: datetime(2015, 8, 30, 12, 36, tzinfo=timezone.utc),
    )

    signed = client.sign("POST", "/pets", body={"name": "rex"}, query_params={"dryRun": "true"})
    print(f"{signed.method} {signed.url}")
    for name, value in signed.headers.items():
        print(f"  {name}: {value}")
    print(f"  body: {signed.body}")


def unsigned_example():
    """Demonstrate a client without credentials"""
    print("\n=== Unsigned Request Example ===")

    client = ApiGatewayClient(
        ClientConfig(invoke_url="https://abc123.execute-api.us-east-1.amazonaws.com/prod"),
        transport=DemoTransport(),
    )
    print(f"Auth type: {client.auth_type}")
    signed = client.sign("GET", "/pets")
    print(f"Headers: {signed.headers}")


async def retry_example():
    """Demonstrate retrying transient failures"""
    print("\n=== Retry Example ===")

    transport = DemoTransport(failures=2)
    config = ClientConfig(
        invoke_url="https://abc123.execute-api.us-east-1.amazonaws.com/prod",
        retry_policy=create_retry_policy(3, 'exponential'),
    )

    async with ApiGatewayClient(config, transport=transport) as client:
        response = await client.invoke_api("GET", "/pets")

    print(f"Status {response.status_code} after {transport.calls} attempts: {response.json()}")


async def error_handling_example():
    """Demonstrate error handling"""
    print("\n=== Error Handling Example ===")

    try:
        ClientConfig(invoke_url="https://example.com", access_key="AKIDEXAMPLE", region="us-east-1")
    except ConfigurationError as e:
        print(f"✓ Caught configuration error [{e.error_code}]: {e}")

    config = ClientConfig(invoke_url="https://abc123.execute-api.us-east-1.amazonaws.com/prod")
    async with ApiGatewayClient(config, transport=DemoTransport(failures=10)) as client:
        try:
            await client.invoke_api("POST", "/pets", body={"name": "rex"})
        except ResponseError as e:
            print(f"✓ Caught response error [{e.http_status}]: {e}")


def main():
    """Run all examples"""
    logging.basicConfig(level=logging.INFO)

    print("API Gateway Python SDK - Request Signing Examples")
    print("=" * 50)

    try:
        basic_signing_example()
        client_signing_example()
        unsigned_example()
        asyncio.run(retry_example())
        asyncio.run(error_handling_example())

        print("\n\n=== All Examples Completed Successfully! ===")

    except Exception as e:
        print(f"\n✗ Example failed: {type(e).__name__}: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
