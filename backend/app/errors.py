from typing import Any, Optional

# marker shared by every expected business-rule rejection; anything without it is an infrastructure failure
DOMAIN_ERROR_NUMBER = 51000

ACCOUNT_ID_REQUIRED = "idAccountRequired"
PRODUCT_ID_REQUIRED = "idProductRequired"
SESSION_ID_REQUIRED = "sessionIdRequired"
FLAVOR_ID_REQUIRED = "idFlavorRequired"
SIZE_ID_REQUIRED = "idSizeRequired"
PRODUCT_DOESNT_EXIST = "productDoesntExist"
PRODUCT_NOT_AVAILABLE = "productNotAvailable"
FLAVOR_NOT_AVAILABLE = "flavorNotAvailable"
SIZE_NOT_AVAILABLE = "sizeNotAvailable"
QUANTITY_MUST_BE_POSITIVE = "quantityMustBeGreaterThanZero"
QUANTITY_EXCEEDS_MAXIMUM = "quantityExceedsMaximum"
RELATED_CRITERIA_NOT_IMPLEMENTED = "relatedCriteriaNotImplemented"


class DomainError(Exception):
    """
    Expected rejection raised by a repository when a business rule fails.
    `message` is a machine-readable key (e.g. "productDoesntExist") returned to the client as-is.
    """

    number = DOMAIN_ERROR_NUMBER
    http_status = 400
    code = "BUSINESS_RULE"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class CriteriaNotImplementedError(DomainError):
    http_status = 501
    code = "NOT_IMPLEMENTED"

    def __init__(self, criteria: str):
        super().__init__(RELATED_CRITERIA_NOT_IMPLEMENTED, details={"criteria": criteria})
        self.criteria = criteria
