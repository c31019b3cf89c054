"""
BabyShop Backend — Abstract Image Recognition Interface
=======================================================

What:  Contract for the service that looks at a product photo and describes it.
Why:   The analyze endpoint only needs "image in, structured description out".
       Keeping the provider behind this interface lets tests substitute a
       stub and keeps provider SDK details out of ImageService.
"""

from abc import ABC, abstractmethod

from babyshop.schemas.image import ImageAnalysis


class VisionService(ABC):
    """
    Contract:
        - describe_image() never raises for provider problems. Missing
          credentials, an open circuit, failed calls and unparseable answers
          all produce a fallback ImageAnalysis whose description says so.
        - health_check() is cheap and returns a bool.
    """

    @abstractmethod
    async def describe_image(self, image: bytes, media_type: str = "image/jpeg") -> ImageAnalysis:
        """
        Identify the product in a photo.

        Args:
            image:      Raw image bytes (already base64-decoded).
            media_type: MIME type of the image.

        Returns:
            ImageAnalysis with names, description, brand, serial number and
            keywords, or a fallback with only `description` set.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...
