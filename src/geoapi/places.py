"""Places endpoints: text search, place details, query autocomplete and photos.

Each builder records parameters and validates them once before dispatch. Responses are
returned as plain JSON mappings, except photos, which come back as raw image bytes.
"""

from collections.abc import Mapping
from typing import Any, Union

from .builder import ApiRequest, check_range, latlng
from .errors import ValidationError
from .types import RawResponse

MAX_RADIUS_METERS = 50_000
MAX_PHOTO_DIMENSION = 1600


class TextSearchRequest(ApiRequest[dict]):
    path = "/maps/api/place/textsearch/json"
    response_shape = "places_search"

    def query(self, query: str):
        return self.param("query", query)

    def location(self, location: Union[str, tuple[float, float]]):
        return self.param("location", latlng(location))

    def radius(self, radius: int):
        return self.param("radius", radius)

    def minprice(self, price_level: int):
        return self.param("minprice", price_level)

    def maxprice(self, price_level: int):
        return self.param("maxprice", price_level)

    def opennow(self, opennow: bool):
        return self.param("opennow", str(bool(opennow)).lower())

    def pagetoken(self, next_page_token: str):
        return self.param("pagetoken", next_page_token)

    def validate(self) -> None:
        # The page token encodes the original query.
        if not self.has_param("query") and not self.has_param("pagetoken"):
            raise ValidationError("Request must contain 'query' or a 'pagetoken'.")
        if self.has_param("location") and not self.has_param("radius"):
            raise ValidationError(
                "Request must contain 'radius' parameter when it contains a 'location' parameter."
            )
        check_range(
            self, "radius", 0, MAX_RADIUS_METERS, "The maximum allowed radius is 50,000 meters."
        )
        check_range(self, "minprice", 0, 4, "minprice must be between 0 and 4, inclusive.")
        check_range(self, "maxprice", 0, 4, "maxprice must be between 0 and 4, inclusive.")

    def convert(self, response: Mapping[str, Any]) -> dict:
        return {
            "html_attributions": list(response.get("html_attributions", [])),
            "results": list(response.get("results", [])),
            "next_page_token": response.get("next_page_token"),
        }


class PlaceDetailsRequest(ApiRequest[Union[dict, None]]):
    path = "/maps/api/place/details/json"
    response_shape = "place_details"

    def place_id(self, place_id: str):
        return self.param("placeid", place_id)

    def validate(self) -> None:
        if not self.has_param("placeid"):
            raise ValidationError("Request must contain 'placeId'.")

    def convert(self, response: Mapping[str, Any]) -> Union[dict, None]:
        return response.get("result")


class QueryAutocompleteRequest(ApiRequest[list]):
    path = "/maps/api/place/queryautocomplete/json"
    response_shape = "autocomplete"

    def input(self, text: str):
        return self.param("input", text)

    def offset(self, offset: int):
        return self.param("offset", offset)

    def location(self, location: Union[str, tuple[float, float]]):
        return self.param("location", latlng(location))

    def radius(self, radius: int):
        return self.param("radius", radius)

    def validate(self) -> None:
        if not self.has_param("input"):
            raise ValidationError("Request must contain 'input'.")
        check_range(
            self, "radius", 0, MAX_RADIUS_METERS, "The maximum allowed radius is 50,000 meters."
        )

    def convert(self, response: Mapping[str, Any]) -> list:
        return list(response.get("predictions", []))


class PhotoRequest(ApiRequest[dict]):
    """Fetch a place photo. The reply body is the image itself, not JSON."""

    path = "/maps/api/place/photo"
    response_shape = "photo"
    raw_response = True

    def photo_reference(self, photo_reference: str):
        return self.param("photoreference", photo_reference)

    def max_width(self, max_width: int):
        return self.param("maxwidth", max_width)

    def max_height(self, max_height: int):
        return self.param("maxheight", max_height)

    def validate(self) -> None:
        if not self.has_param("photoreference"):
            raise ValidationError("Request must contain 'photoReference'.")
        if not self.has_param("maxwidth") and not self.has_param("maxheight"):
            raise ValidationError("Request must contain 'maxHeight' or 'maxWidth'.")
        check_range(
            self, "maxwidth", 1, MAX_PHOTO_DIMENSION, "maxwidth must be between 1 and 1600."
        )
        check_range(
            self, "maxheight", 1, MAX_PHOTO_DIMENSION, "maxheight must be between 1 and 1600."
        )

    def convert(self, response: RawResponse) -> dict:
        return {
            "content_type": response.header("Content-Type"),
            "data": response.body,
        }


def text_search_query(context, query: str) -> TextSearchRequest:
    return TextSearchRequest(context).query(query)


def text_search_next_page(context, next_page_token: str) -> TextSearchRequest:
    """Follow-up page; the token stands in for every original parameter."""
    return TextSearchRequest(context).pagetoken(next_page_token)


def place_details(context, place_id: str) -> PlaceDetailsRequest:
    return PlaceDetailsRequest(context).place_id(place_id)


def query_autocomplete(context, text: str) -> QueryAutocompleteRequest:
    return QueryAutocompleteRequest(context).input(text)


def photo(context, photo_reference: str) -> PhotoRequest:
    return PhotoRequest(context).photo_reference(photo_reference)
