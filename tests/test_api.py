import pytest
from sqlalchemy import select

from vitrineturbo.models import User, Subscription, SubscriptionPlan

pytestmark = pytest.mark.asyncio

DAY = 24 * 60 * 60


# ============================================
# APP
# ============================================

async def test_root_and_health(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "VitrineTurbo"

    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Frame-Options"] == "DENY"


async def test_database_failure_maps_to_backend_error(client, engine):
    async with engine.begin() as conn:
        await conn.run_sync(SubscriptionPlan.__table__.drop)

    response = await client.get("/api/plans")

    assert response.status_code == 502
    body = response.json()
    assert body["kind"] == "backend_failure"
    assert "subscription_plans" in body["detail"]


async def test_setup_creates_admin_once(client, db_session):
    response = await client.post("/api/auth/setup")
    assert response.status_code == 200

    result = await db_session.execute(select(User).where(User.role == "admin"))
    assert result.scalar_one().email == "admin@vitrineturbo.com"

    response = await client.post("/api/auth/setup")
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_failure"


# ============================================
# AUTH
# ============================================

async def test_login_and_session(client, make_user, login, registry):
    user = await make_user(name="Ana")
    headers = await login(user.email)

    response = await client.get("/api/auth/session", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == user.id
    assert body["role"] == "corretor"
    assert body["role_label"] == "Vendedor"
    assert body["display_name"] == "Ana"
    assert response.headers["Cache-Control"].startswith("no-store")

    session_id = headers["Authorization"].split()[1]
    assert registry.session_ids() == {session_id}


async def test_login_wrong_password(client, make_user):
    user = await make_user()
    response = await client.post("/api/auth/login", json={"email": user.email, "password": "errada123"})

    assert response.status_code == 401
    assert response.json() == {"detail": "E-mail ou senha incorretos!", "kind": "auth_failure"}


async def test_login_blocked_user(client, make_user):
    user = await make_user(is_blocked=True)
    response = await client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})

    assert response.status_code == 403
    assert response.json()["kind"] == "blocked_user"


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer qualquer-coisa"},
    {"Authorization": "Bearer session_1_naoexiste"},
])
async def test_session_requires_valid_bearer(client, headers):
    response = await client.get("/api/auth/session", headers=headers)

    assert response.status_code == 401
    assert response.json()["kind"] == "session_expired"


async def test_expired_session_is_removed(client, make_user, login, clock, registry):
    user = await make_user()
    headers = await login(user.email)

    clock.advance(7 * DAY + 1)

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Sessão expirada. Faça login novamente.", "kind": "session_expired"}
    assert registry.session_ids() == set()


async def test_requests_extend_the_session(client, make_user, login, clock):
    user = await make_user()
    headers = await login(user.email)

    for _ in range(3):
        clock.advance(5 * DAY)
        response = await client.get("/api/auth/session", headers=headers)
        assert response.status_code == 200


async def test_logout(client, make_user, login):
    user = await make_user()
    headers = await login(user.email)

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/auth/session", headers=headers)
    assert response.status_code == 401


async def test_blocked_during_session_ends_it(client, db_session, make_user, login):
    user = await make_user()
    headers = await login(user.email)
    user.is_blocked = True
    await db_session.commit()

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 403
    assert response.json()["kind"] == "blocked_user"

    response = await client.get("/api/auth/session", headers=headers)
    assert response.status_code == 401


async def test_permissions_endpoint(client, make_user, login):
    user = await make_user(role="parceiro")
    headers = await login(user.email)

    response = await client.get("/api/auth/permissions", headers=headers)
    assert response.json() == {
        "role": "parceiro",
        "can_manage_users": True,
        "can_manage_finances": False,
        "can_manage_settings": False,
        "can_create_products": True,
        "can_view_analytics": True,
    }


async def test_register_with_referral_code(client, db_session, make_user):
    referrer = await make_user("indicador@example.com", referral_code="ABCD2345")

    response = await client.post("/api/auth/register", json={
        "email": "Nova@Example.com",
        "password": "secret123",
        "name": "Loja da Nova",
        "referral_code": "abcd2345",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "nova@example.com"
    assert body["user"]["role"] == "corretor"
    assert body["user"]["slug"] == "loja-da-nova"
    assert len(body["user"]["referral_code"]) == 8

    result = await db_session.execute(select(User).where(User.email == "nova@example.com"))
    assert result.scalar_one().referred_by == referrer.id

    headers = {"Authorization": f"Bearer {body['session_id']}"}
    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 200

    response = await client.post("/api/auth/register", json={
        "email": "nova@example.com",
        "password": "secret123",
        "name": "Outra",
    })
    assert response.status_code == 422
    assert response.json()["detail"] == "Este email já está em uso."


# ============================================
# CATÁLOGO
# ============================================

async def test_permission_denied_keeps_session(client, make_user, make_product, login):
    parceiro = await make_user(role="parceiro")
    product = await make_product(parceiro)
    headers = await login(parceiro.email)

    response = await client.delete(f"/api/products/{product.id}", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"detail": "Permissão insuficiente para esta ação", "kind": "insufficient_permission"}

    response = await client.get("/api/auth/session", headers=headers)
    assert response.status_code == 200


async def test_corretor_manages_own_products(client, make_user, login):
    user = await make_user()
    headers = await login(user.email)

    response = await client.post("/api/products", headers=headers, json={"title": "Camiseta", "price": 59.9})
    assert response.status_code == 201
    product_id = response.json()["id"]

    response = await client.get("/api/products", headers=headers)
    assert [p["id"] for p in response.json()] == [product_id]

    response = await client.delete(f"/api/products/{product_id}", headers=headers)
    assert response.status_code == 200

    response = await client.delete(f"/api/products/{product_id}", headers=headers)
    assert response.status_code == 404


async def test_custom_sizes_endpoints(client, make_user, login):
    user = await make_user()
    headers = await login(user.email)

    response = await client.post("/api/custom-sizes", headers=headers, json={"size_name": " XGG "})
    assert response.json() == {"success": True, "sizes": ["XGG"]}

    response = await client.post("/api/custom-sizes", headers=headers, json={"size_name": "  "})
    assert response.json() == {"success": False, "sizes": ["XGG"]}

    response = await client.delete("/api/custom-sizes/XGG", headers=headers)
    assert response.json() == {"success": True, "sizes": []}


async def test_plans_are_public(client):
    response = await client.get("/api/plans")
    assert response.status_code == 200
    assert response.json() == []


# ============================================
# VITRINE
# ============================================

async def test_storefront_order(client, make_user, make_product):
    seller = await make_user(name="Ana", slug="loja-ana", whatsapp="(11) 98765-4321")
    product = await make_product(seller, title="Camiseta", price=100.0, discounted_price=80.0)

    response = await client.post("/api/storefront/loja-ana/order", json={
        "language": "en-US",
        "items": [{"product_id": product.id, "quantity": 2, "selected_color": "Azul"}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["item_count"] == 2
    assert body["total"] == 160
    assert "Hello Ana" in body["message"]
    assert "   Unit price: R$80.00" in body["message"]
    assert "*TOTAL: R$160.00*" in body["message"]
    assert f"http://test/loja-ana/produtos/{product.id}" in body["message"]
    assert body["whatsapp_url"].startswith("https://wa.me/5511987654321?text=")


async def test_storefront_order_uses_canonical_origin_in_production(client, make_user, make_product):
    seller = await make_user(slug="loja-ana")
    product = await make_product(seller)

    response = await client.post(
        "/api/storefront/loja-ana/order",
        json={"items": [{"product_id": product.id}]},
        headers={"Origin": "https://loja-ana.netlify.app"},
    )

    body = response.json()
    assert f"https://vitrineturbo.com/loja-ana/produtos/{product.id}" in body["message"]
    assert body["whatsapp_url"] == "#"


async def test_storefront_order_rejects_unknown_or_unpriced_products(client, make_user, make_product):
    seller = await make_user(slug="loja-ana")
    unpriced = await make_product(seller, title="Sob consulta", price=None)

    response = await client.post("/api/storefront/loja-ana/order", json={"items": [{"product_id": "nope"}]})
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"

    response = await client.post("/api/storefront/loja-ana/order", json={"items": [{"product_id": unpriced.id}]})
    assert response.status_code == 422

    response = await client.post("/api/storefront/outra/order", json={"items": [{"product_id": unpriced.id}]})
    assert response.status_code == 404


async def test_storefront_lists_visible_products(client, make_user, make_product):
    seller = await make_user(slug="loja-ana")
    await make_product(seller, title="Visível")
    await make_product(seller, title="Oculto", is_visible_on_storefront=False)

    response = await client.get("/api/storefront/loja-ana/products")

    assert response.status_code == 200
    assert [p["title"] for p in response.json()["products"]] == ["Visível"]


# ============================================
# INDICAÇÕES
# ============================================

async def test_referral_program_flow(client, db_session, make_user, login):
    admin = await make_user("admin@example.com", role="admin")
    referrer = await make_user("indicador@example.com", referral_code="ABCD2345")
    referred = await make_user("indicado@example.com", referred_by=referrer.id)
    subscription = Subscription(user_id=referred.id, plan_name="Plano Anual")
    db_session.add(subscription)
    await db_session.commit()

    admin_headers = await login(admin.email)
    headers = await login(referrer.email)

    # Corretor não acessa rotas de admin
    response = await client.post(f"/api/admin/subscriptions/{subscription.id}/activate", headers=headers)
    assert response.status_code == 403

    response = await client.post(f"/api/admin/subscriptions/{subscription.id}/activate", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = await client.get("/api/referrals/stats", headers=headers)
    stats = response.json()
    assert stats["total_referrals"] == 1
    assert stats["active_referrals"] == 1
    assert stats["available_for_withdrawal"] == 100
    assert stats["is_available"] is True

    response = await client.put("/api/referrals/pix-key", headers=headers, json={
        "pix_key": "12345678900",
        "pix_key_type": "cpf",
        "holder_name": "Indicador",
    })
    assert response.status_code == 200
    assert response.json()["formatted_key"] == "123.456.789-00"

    response = await client.post("/api/referrals/withdrawals", headers=headers, json={"amount": 100})
    assert response.status_code == 201
    withdrawal_id = response.json()["id"]

    response = await client.get("/api/referrals/stats", headers=headers)
    assert response.json()["available_for_withdrawal"] == 0

    response = await client.post(
        f"/api/admin/referrals/withdrawals/{withdrawal_id}/mark_paid",
        headers=admin_headers,
        json={"notes": "PIX enviado"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert response.json()["admin_notes"] == "PIX enviado"


async def test_referral_link(client, make_user, login):
    user = await make_user(referral_code="ABCD2345")
    headers = await login(user.email)

    response = await client.get("/api/referrals/link", headers=headers)
    assert response.json() == {
        "referral_code": "ABCD2345",
        "link": "https://vitrineturbo.com/register?ref=ABCD2345",
    }


async def test_public_referral_helpers(client):
    response = await client.post("/api/referrals/pix/validate", json={"pix_key": "abc", "pix_key_type": "email"})
    assert response.json() == {"valid": False, "formatted_key": "abc"}

    response = await client.get("/api/referrals/commission-amount", params={"plan_type": "Plano Semestral"})
    assert response.json() == {"plan_type": "Plano Semestral", "amount": 70.0, "formatted_amount": "R$ 70,00"}


# ============================================
# USUÁRIOS
# ============================================

async def test_user_management_requires_manager_role(client, make_user, login):
    corretor = await make_user()
    headers = await login(corretor.email)

    response = await client.get("/api/admin/users", headers=headers)
    assert response.status_code == 403
    assert response.json()["kind"] == "insufficient_permission"


async def test_parceiro_manages_created_users(client, make_user, login):
    parceiro = await make_user("parceiro@example.com", role="parceiro", slug="parceiro")
    headers = await login(parceiro.email)

    response = await client.post("/api/admin/users", headers=headers, json={
        "email": "cliente@example.com",
        "password": "secret123",
        "name": "Loja do Cliente",
        "role": "admin",
    })
    assert response.status_code == 201
    created = response.json()
    assert created["role"] == "corretor"
    assert created["created_by"] == parceiro.id

    response = await client.get("/api/admin/users", headers=headers)
    assert [u["id"] for u in response.json()] == [created["id"]]

    user_headers = await login("cliente@example.com")

    response = await client.post(f"/api/admin/users/{created['id']}/block", headers=headers)
    assert response.json()["is_blocked"] is True

    # A sessão do usuário bloqueado é encerrada na próxima requisição
    response = await client.get("/api/auth/me", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["kind"] == "blocked_user"

    response = await client.post(f"/api/admin/users/{created['id']}/unblock", headers=headers)
    assert response.json()["is_blocked"] is False

    response = await client.put(
        f"/api/admin/users/{created['id']}/password",
        headers=headers,
        json={"new_password": "trocada123"},
    )
    assert response.status_code == 200
    await login("cliente@example.com", "trocada123")

    response = await client.delete(f"/api/admin/users/{created['id']}", headers=headers)
    assert response.status_code == 200

    response = await client.get(f"/api/admin/users/{created['id']}", headers=headers)
    assert response.status_code == 404


async def test_parceiro_cannot_touch_other_users(client, make_user, login):
    parceiro = await make_user("parceiro@example.com", role="parceiro", slug="parceiro")
    other = await make_user("outro@example.com", slug="outro")
    headers = await login(parceiro.email)

    response = await client.post(f"/api/admin/users/{other.id}/block", headers=headers)
    assert response.status_code == 404

    response = await client.put(
        f"/api/admin/users/{other.id}/email",
        headers=headers,
        json={"new_email": "roubado@example.com"},
    )
    assert response.status_code == 404


async def test_admin_changes_user_email(client, make_user, login):
    admin = await make_user("admin@example.com", role="admin", slug="admin")
    user = await make_user("vendedor@example.com", slug="vendedor")
    headers = await login(admin.email)

    response = await client.put(
        f"/api/admin/users/{user.id}/email",
        headers=headers,
        json={"new_email": "Novo@Example.com"},
    )
    assert response.status_code == 200
    assert response.json()["email"] == "novo@example.com"
