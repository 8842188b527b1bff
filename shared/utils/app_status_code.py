class AppStatusCode:
    # generic failures
    OPERATION_FAILED = "200"
    OPERATION_ERROR = "201"
    INVALID_INPUT = "202"
    REQUIRED_VALIDATION_ERROR = "203"
    NOT_FOUND = "204"
    DUPLICATE_ADD_ERROR = "205"
    SERVICE_UNAVAILABLE = "206"

    # authentication
    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_CREDENTIALS_INVALID = "302"
    AUTHENTICATION_USER_INVALID = "303"
    AUTHENTICATION_USER_INACTIVE = "304"
    AUTHENTICATION_UNAUTHORIZED_ACCESS = "305"

    # audit workflow
    INVALID_STATE_TRANSITION = "400"
    ROUTING_UNRESOLVED = "401"
    INELIGIBLE_APPROVER = "402"
