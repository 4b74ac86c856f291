from restaurant_auth.application.services.demo_policy import DEFAULT_DEMO_IDENTITIES, DemoIdentity, DemoPolicy


def test_known_demo_phones():
    policy = DemoPolicy()
    admin = policy.lookup("+919876543210")
    assert admin.code == "123456"
    assert admin.role == "business_admin"
    assert policy.lookup("+919876543211").role == "employee"
    assert policy.lookup("+14155552222").code == "111111"


def test_unknown_phone_is_not_demo():
    assert DemoPolicy().lookup("+919000000000") is None


def test_disabled_policy_never_matches():
    policy = DemoPolicy(enabled=False)
    assert all(policy.lookup(identity.phone) is None for identity in DEFAULT_DEMO_IDENTITIES)


def test_custom_identities():
    policy = DemoPolicy([DemoIdentity("+61412345678", "999999", "employee")])
    assert policy.lookup("+61412345678").code == "999999"
    assert policy.lookup("+919876543210") is None
