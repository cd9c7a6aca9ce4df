"""
Basic client example using reqstream.

This example demonstrates plain requests, cookie handling across
requests, and reading a response through its stream interface.
"""

import logging

from reqstream import Client, ConnectivityError, TransportError, open_url

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def simple_get_request(client: Client):
    """Demonstrate a simple GET request."""
    logger.info("Making simple GET request...")

    response = client.get("http://httpbin.org/get")
    logger.info(f"Response status: {response.code}")
    logger.info(f"Content type: {response.content_type}")
    logger.info(f"Decoded body keys: {sorted(response.body)}")
    logger.info(f"Redirects followed: {client.last_request_info.get('redirect_count')}")


def post_form(client: Client):
    """Demonstrate a form-encoded POST request."""
    logger.info("Making POST request with form body...")

    response = client.post("http://httpbin.org/post", {"message": "Hello, World!"})
    logger.info(f"Response status: {response.code}")
    logger.info(f"Server saw form: {response.body['form']}")


def cookie_session(client: Client):
    """Demonstrate cookies set through a redirect chain."""
    logger.info("Collecting cookies through a redirect...")

    client.get("http://httpbin.org/cookies/set?session=abc123&theme=dark")
    logger.info(f"Cookie jar: {client.cookies}")

    response = client.get("http://httpbin.org/cookies")
    logger.info(f"Server saw cookies: {response.body['cookies']}")


def streaming_demo():
    """Demonstrate reading a JSON response element by element."""
    logger.info("Streaming a JSON response...")

    with open_url("http://httpbin.org/json") as response:
        while not response.empty():
            element = response.read()
            logger.info(f"Element {response.read_index}: {element}")

        response.rewind()
        logger.info(f"After rewind, first element: {response.peek()}")


def main():
    """Run all examples."""
    logger.info("Starting reqstream client examples...")

    with Client() as client:
        try:
            simple_get_request(client)
            print()

            post_form(client)
            print()

            cookie_session(client)
            print()

            streaming_demo()

        except ConnectivityError as e:
            logger.error(f"Network problem: {e.diagnostic}")
            raise
        except TransportError as e:
            logger.error(f"Example failed with transport code {e.code}: {e}")
            raise

    logger.info("All examples completed successfully!")


if __name__ == "__main__":
    main()
