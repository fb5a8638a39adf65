FRIENDLY_MESSAGES = {
    "TimeoutError": "The dashboard took too long to answer. Please try again later.",
    "ConnectionError": "Unable to reach the property database. Please try again later.",
    "OperationalError": "Temporary issue while accessing data. Please try again shortly.",
    "IntegrityError": "This change conflicts with existing records.",
    "InvalidOperation": "An amount could not be calculated. Please check the values.",
    "KeyError": "Some required information is missing.",
}


def get_friendly_message(error: Exception) -> str:
    for key, msg in FRIENDLY_MESSAGES.items():
        if key.lower() in str(type(error)).lower():
            return msg
    return "Something went wrong on our end. Please try again."
