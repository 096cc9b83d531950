def standardized_response(success=True, data=None, message=None, error=None,
                          errors=None, pagination=None, error_code=None, **extra):
    """
    Build the response envelope shared by every endpoint:

        {"success": bool, "data"?, "message"?, "errors"?, "pagination"?}

    ``error`` is the short form used by views: a plain string becomes the
    ``message``; a structured payload (serializer errors) goes to ``errors``.
    Keys whose value is None are left out.
    """
    body = {"success": success}

    if error is not None:
        if isinstance(error, (dict, list)):
            errors = error if errors is None else errors
            message = message or "Validation error"
        else:
            message = message or str(error)

    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if errors is not None:
        body["errors"] = errors
    if pagination is not None:
        body["pagination"] = pagination
    if error_code is not None:
        body["code"] = error_code

    body.update({k: v for k, v in extra.items() if v is not None})
    return body
