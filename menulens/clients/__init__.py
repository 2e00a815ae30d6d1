"""Clients for external API interactions."""
from menulens.clients.yelp_client import YelpClient
from menulens.clients.vision_client import VisionClient

__all__ = ["YelpClient", "VisionClient"]
