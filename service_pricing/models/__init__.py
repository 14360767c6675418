"""Models — enums and pydantic document/request/response schemas."""
