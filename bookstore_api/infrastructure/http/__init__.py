from bookstore_api.infrastructure.http.api_client import ApiClient, RequestBuilder, RequestTemplate

__all__ = ["ApiClient", "RequestBuilder", "RequestTemplate"]
