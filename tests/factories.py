STRONG_PASSWORD = "Secret123!"


def user_payload(username: str = "budi", **overrides) -> dict:
    payload = {
        "username": username,
        "fullname": username.title(),
        "email": f"{username}@mail.com",
        "password": STRONG_PASSWORD,
        "phone": "081234567890",
    }
    payload.update(overrides)
    return payload
