SENSITIVE_KEYS = ('password', 'current_password', 'new_password', 'confirm_password', 'token', 'access', 'refresh', 'secret')


def mask_email(email):
    """이메일 마스킹"""
    if not email or '@' not in email:
        return email
    prefix, domain = email.split('@', 1)
    masked_prefix = prefix[:2] + '*' * max(len(prefix) - 2, 0)
    return f"{masked_prefix}@{domain}"


def mask_sensitive_data(data):
    """딕셔너리 내 민감 정보 일괄 마스킹"""
    if not isinstance(data, dict):
        return data

    masked_data = data.copy()
    if 'email' in masked_data:
        email = masked_data['email']
        if isinstance(email, list):
            masked_data['email'] = [mask_email(e) for e in email]
        else:
            masked_data['email'] = mask_email(email)
    for key in SENSITIVE_KEYS:
        if key in masked_data:
            masked_data[key] = '********'

    return masked_data
