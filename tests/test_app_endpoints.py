from fastapi.testclient import TestClient

from conftest import login
from storefront.auth import cookies
from storefront.infra import catalog_repo


def _set_cookie(resp) -> str:
    return ", ".join(resp.headers.get_list("set-cookie"))


def test_products_without_cookie_redirects_to_login(client):
    r = client.get("/products", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_admin_without_cookie_redirects_to_login(client):
    r = client.get("/admin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_root_redirects_by_role(app, users):
    anon = TestClient(app)
    assert anon.get("/", follow_redirects=False).headers["location"] == "/login"

    admin = TestClient(app)
    login(admin, "admin", "admin123")
    assert admin.get("/", follow_redirects=False).headers["location"] == "/admin"

    customer = TestClient(app)
    login(customer, "customer", "customer123")
    assert customer.get("/", follow_redirects=False).headers["location"] == "/products"


def test_login_sets_session_cookie_and_lands_by_role(client, users):
    r = login(client, "admin", "admin123")
    assert r.status_code == 303
    assert r.headers["location"] == "/admin"
    header = _set_cookie(r)
    assert header.startswith(f"{cookies.COOKIE_NAME}=")
    assert "HttpOnly" in header
    assert "Path=/" in header
    assert "Max-Age=604800" in header
    assert "SameSite=Lax" in header


def test_login_with_wrong_password(client, users):
    r = login(client, "admin", "wrong-password")
    assert r.status_code == 200
    assert "Invalid username or password" in r.text
    assert not r.headers.get_list("set-cookie")


def test_login_with_unknown_user_gives_same_message(client, users):
    r = login(client, "nobody", "whatever1")
    assert "Invalid username or password" in r.text


def test_login_missing_fields(client):
    r = client.post("/login", data={"username": "admin"}, follow_redirects=False)
    assert r.status_code == 200
    assert "Username and password are required" in r.text


def test_login_page_when_already_signed_in(client, users):
    login(client, "customer", "customer123")
    r = client.get("/login", follow_redirects=False)
    assert r.headers["location"] == "/products"


def test_login_page_lists_demo_accounts(tmp_path):
    from storefront.app import create_app
    from storefront.settings import DemoAccount, Settings

    s = Settings(secret_key="k", data_dir=tmp_path, demo_customer=DemoAccount("shopper", "shop123"))
    r = TestClient(create_app(s)).get("/login")
    assert r.status_code == 200
    assert "shopper" in r.text


def test_signup_creates_customer_and_signs_in(client, settings):
    r = client.post("/signup", data={"username": "jane", "password": "secret1"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/products"
    assert cookies.COOKIE_NAME in _set_cookie(r)

    page = client.get("/products")
    assert page.status_code == 200
    assert "jane" in page.text


def test_signup_duplicate_username(client, users):
    r = client.post("/signup", data={"username": "admin", "password": "secret1"}, follow_redirects=False)
    assert r.status_code == 200
    assert "Username already taken" in r.text


def test_signup_validation_errors(client):
    r = client.post("/signup", data={"username": "jo", "password": "secret1"})
    assert "Username must be at least 3 characters" in r.text
    r = client.post("/signup", data={"username": "jane", "password": "123"})
    assert "Password must be at least 6 characters" in r.text


def test_customer_on_admin_is_redirected_not_logged_out(client, users):
    login(client, "customer", "customer123")
    r = client.get("/admin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/products"
    assert client.get("/products").status_code == 200


def test_customer_cannot_post_to_admin(client, users, settings):
    login(client, "customer", "customer123")
    r = client.post("/admin", data={"intent": "add-product", "name": "Mug", "price": "3"}, follow_redirects=False)
    assert r.headers["location"] == "/products"
    assert catalog_repo.read_products(settings.catalog_path).empty


def test_admin_adds_product(client, users, settings):
    login(client, "admin", "admin123")
    r = client.post("/admin", data={"intent": "add-product", "name": "Ceramic Mug", "price": "24.99"})
    assert r.status_code == 200
    assert "Product added successfully!" in r.text
    assert "Ceramic Mug" in r.text

    df = catalog_repo.read_products(settings.catalog_path)
    assert df["name"].tolist() == ["Ceramic Mug"]
    assert catalog_repo.read_shops(settings.catalog_path)["admin_id"].tolist() == [str(users["admin"])]


def test_admin_add_product_with_bad_price(client, users, settings):
    login(client, "admin", "admin123")
    r = client.post("/admin", data={"intent": "add-product", "name": "Mug", "price": "-5"})
    assert "Price must be a positive number" in r.text
    assert catalog_repo.read_products(settings.catalog_path).empty


def test_customer_buys_product(client, users, settings):
    shop = catalog_repo.create_shop(settings.catalog_path, users["admin"])
    pid = catalog_repo.append_product(settings.catalog_path, shop, "Leather Journal", "34.50")

    login(client, "customer", "customer123")
    assert "Leather Journal" in client.get("/products").text

    r = client.post("/products", data={"intent": "buy", "product_id": str(pid)}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/products"
    assert catalog_repo.read_products(settings.catalog_path).empty


def test_buying_unknown_product_shows_error(client, users):
    login(client, "customer", "customer123")
    r = client.post("/products", data={"intent": "buy", "product_id": "999"})
    assert r.status_code == 200
    assert "Unknown product" in r.text


def test_logout_intent_clears_cookie(client, users):
    login(client, "customer", "customer123")
    r = client.post("/products", data={"intent": "logout"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    header = _set_cookie(r)
    assert header.startswith(f"{cookies.COOKIE_NAME}=")
    assert cookies.decode(header) is None
    assert "Max-Age=0" in header


def test_logout_route_clears_cookie(client, users):
    login(client, "admin", "admin123")
    r = client.post("/logout", follow_redirects=False)
    assert r.headers["location"] == "/login"
    assert "Max-Age=0" in _set_cookie(r)


def test_forged_cookie_is_treated_as_anonymous(app):
    c = TestClient(app)
    r = c.get("/products", headers={"cookie": f"{cookies.COOKIE_NAME}=forged.token.sig"}, follow_redirects=False)
    assert r.headers["location"] == "/login"


def test_cookie_from_another_secret_is_rejected(app):
    from storefront.auth.session import Identity, SessionCodec

    token = SessionCodec("some-other-secret").issue(Identity(1, "admin", True))
    c = TestClient(app)
    r = c.get("/admin", headers={"cookie": f"{cookies.COOKIE_NAME}={token}"}, follow_redirects=False)
    assert r.headers["location"] == "/login"


def test_export_csv_for_admin_only(app, users, settings):
    shop = catalog_repo.create_shop(settings.catalog_path, users["admin"])
    catalog_repo.append_product(settings.catalog_path, shop, "Macrame Plant Hanger", "22.00")

    admin = TestClient(app)
    login(admin, "admin", "admin123")
    r = admin.get("/admin/products.csv")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "Macrame Plant Hanger" in r.text
    assert r.text.splitlines()[0] == "product_id,shop_id,name,price"

    customer = TestClient(app)
    login(customer, "customer", "customer123")
    r = customer.get("/admin/products.csv", follow_redirects=False)
    assert r.headers["location"] == "/products"


def test_admin_add_product_with_control_character(client, users, settings):
    login(client, "admin", "admin123")
    r = client.post("/admin", data={"intent": "add-product", "name": "Mug\x01", "price": "3"})
    assert r.status_code == 200
    assert "Product name contains invalid characters" in r.text
    assert catalog_repo.read_products(settings.catalog_path).empty


def test_export_csv_neutralises_formulas(client, users, settings):
    login(client, "admin", "admin123")
    client.post("/admin", data={"intent": "add-product", "name": "=1+1 Mug", "price": "3"})
    assert catalog_repo.read_products(settings.catalog_path)["name"].tolist() == ["=1+1 Mug"]

    r = client.get("/admin/products.csv")
    assert r.text.splitlines()[1] == "1,1,'=1+1 Mug,3.00"


def test_signup_accepts_password_of_spaces(client):
    r = client.post("/signup", data={"username": "jane", "password": "       "}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/products"
