"""Static application constants."""

PROJECT_NAME = "NAMC NorCal Member Portal"
VERSION = "0.1.0"
API_V1_STR = "/api/v1"

AUTH_COOKIE_NAME = "namc-auth-token"
