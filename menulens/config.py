# menulens/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
YELP_API_KEY = os.getenv("YELP_API_KEY")
GOOGLE_VISION_API_KEY = os.getenv("GOOGLE_VISION_API_KEY")

# Runtime parameters
BATCH_SIZE = 10
CONCURRENCY = 5
REQUEST_TIMEOUT = 30
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Recognition matching
SEARCH_RADIUS_METERS = 150
MIN_SEARCH_RADIUS_METERS = 100
MAX_SEARCH_RADIUS_METERS = 150
MATCH_THRESHOLD = 0.4
NAME_WEIGHT = 0.8
DISTANCE_WEIGHT = 0.2
MAX_CANDIDATES = 8
RECOGNITION_SEARCH_LIMIT = 5

# Free-text resolution
NARROW_SEARCH_LIMIT = 5
BROAD_SEARCH_LIMIT = 10
REVIEW_LIMIT = 20

# Comparison defaults
DEFAULT_BUDGET = 25.0
DEFAULT_LOCATION = (37.7749, -122.4194)  # San Francisco

# URLs
YELP_API_URL = "https://api.yelp.com/v3"
VISION_URL = "https://vision.googleapis.com/v1/images:annotate"

# File names
INPUT_CSV = "comparisons.csv"
OUTPUT_CSV = "comparison_results.csv"
