from __future__ import annotations

import pytest

from app.models.acceso import Acceso

PERSONA = {
    "nombre": "Laura",
    "apellido": "Gómez",
    "fechaNacimiento": "2003-05-14",
    "idInstitucional": "20231045",
    "cedula": "1107845123",
    "rolUniversidad": "Estudiante",
    "correoPersonal": "laura.gomez@gmail.com",
    "tieneCorreoInstitucional": "si",
    "correoInstitucional": "laura.gomez01@unicatolica.edu.co",
    "carnet": "A123",
    "carrera": "Ingeniería de Sistemas",
}

VISITANTE = {
    "nombre": "Carlos",
    "apellido": "Rivas",
    "cedula": "16789456",
    "razonVisita": "Reunión con decanatura",
    "numeroTarjeta": "V-017",
}

CUENTA = {
    "nombre": "María",
    "apellido": "Flores",
    "fechaNacimiento": "1990-02-11",
    "idInstitucional": "ADM-0042",
    "cedula": "31456789",
    "rolUniversidad": "Personal Administrativo",
    "correoPersonal": "maria@example.com",
    "correoInstitucional": "m.flores@unicatolica.edu.co",
    "password": "Segura2025!",
    "role": "admin",
}


@pytest.fixture()
def admin(make_usuario):
    return make_usuario(role="admin")


@pytest.fixture()
def lector(make_usuario):
    return make_usuario(
        role="lector",
        cedula="555",
        correo_personal="lector@example.com",
        correo_institucional="lector@unicatolica.edu.co",
        password="lector1",
    )


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


def test_save_persona_returns_camel_case(client, dispatcher):
    response = client.post("/api/save", json=PERSONA)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "✅ Datos guardados correctamente"
    assert body["huella"]["idInstitucional"] == "20231045"
    assert body["huella"]["rolUniversidad"] == "Estudiante"
    assert body["huella"]["fechaExpiracion"] is None
    assert dispatcher.kinds() == ["person_welcome"]


def test_save_persona_missing_fields(client):
    response = client.post("/api/save", json={"nombre": "Laura"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Faltan datos requeridos"
    campos = {e["campo"] for e in body["errores"]}
    assert {"apellido", "cedula", "carnet"} <= campos


def test_save_persona_with_unknown_role(client):
    response = client.post("/api/save", json={**PERSONA, "rolUniversidad": "Rector"})

    assert response.status_code == 400


def test_save_persona_with_taken_carnet(client):
    client.post("/api/save", json=PERSONA)

    response = client.post("/api/save", json={**PERSONA, "cedula": "1"})

    assert response.status_code == 400
    assert "A123" in response.json()["detail"]


def test_save_visitor_role_sets_expiration(client):
    response = client.post(
        "/api/save",
        json={**PERSONA, "rolUniversidad": "Visitante", "carnet": "VX-1"},
    )

    assert response.json()["huella"]["fechaExpiracion"] is not None


def test_buscar_carnet(client):
    client.post("/api/save", json=PERSONA)

    found = client.get("/api/buscar-carnet/A123")
    missing = client.get("/api/buscar-carnet/Z999")

    assert found.status_code == 200
    assert found.json()["persona"]["nombre"] == "Laura"
    assert missing.status_code == 404
    assert missing.json() == {"detail": "❌ Persona no encontrada"}


def test_list_huellas(client):
    client.post("/api/save", json=PERSONA)

    response = client.get("/api/huellas")

    assert response.status_code == 200
    assert [p["carnet"] for p in response.json()] == ["A123"]


def test_update_huella_requires_admin(client, lector, admin, auth_header):
    persona_id = client.post("/api/save", json=PERSONA).json()["huella"]["id"]
    cambio = {"semestre": "6"}

    anonimo = client.put(f"/api/huellas/{persona_id}", json=cambio)
    como_lector = client.put(f"/api/huellas/{persona_id}", json=cambio, headers=auth_header(lector))
    como_admin = client.put(f"/api/huellas/{persona_id}", json=cambio, headers=auth_header(admin))

    assert anonimo.status_code == 401
    assert como_lector.status_code == 403
    assert como_admin.status_code == 200
    assert como_admin.json()["huella"]["semestre"] == "6"
    assert como_admin.json()["huella"]["carrera"] == "Ingeniería de Sistemas"


def test_update_unknown_huella(client, admin, auth_header):
    response = client.put("/api/huellas/999", json={"semestre": "6"}, headers=auth_header(admin))

    assert response.status_code == 404


@pytest.mark.parametrize("campo", ["nombre", "apellido", "cedula", "rolUniversidad"])
def test_update_huella_rejects_null_required_field(client, admin, auth_header, campo):
    persona_id = client.post("/api/save", json=PERSONA).json()["huella"]["id"]

    response = client.put(
        f"/api/huellas/{persona_id}", json={campo: None}, headers=auth_header(admin)
    )

    assert response.status_code == 400
    assert [e["campo"] for e in response.json()["errores"]] == [campo]
    assert client.get("/api/buscar-carnet/A123").json()["persona"]["nombre"] == "Laura"


def test_delete_huella(client, admin, auth_header):
    persona_id = client.post("/api/save", json=PERSONA).json()["huella"]["id"]

    response = client.delete(f"/api/huellas/{persona_id}", headers=auth_header(admin))

    assert response.status_code == 200
    assert client.get("/api/buscar-carnet/A123").status_code == 404


def test_registrar_visitante(client):
    response = client.post("/api/registrar-visitante", json=VISITANTE)

    assert response.status_code == 200
    assert response.json() == {"message": "✅ Visitante registrado correctamente"}
    persona = client.get("/api/buscar-carnet/V-017").json()["persona"]
    assert persona["rolUniversidad"] == "Visitante"
    assert persona["fechaExpiracion"] is not None


def test_registrar_visitante_requires_every_field(client):
    response = client.post(
        "/api/registrar-visitante", json={k: v for k, v in VISITANTE.items() if k != "razonVisita"}
    )

    assert response.status_code == 400
    assert [e["campo"] for e in response.json()["errores"]] == ["razonVisita"]


# ---------------------------------------------------------------------------
# Scans and history
# ---------------------------------------------------------------------------


def test_registrar_acceso_toggles(client, dispatcher):
    client.post("/api/save", json=PERSONA)

    entrada = client.post("/api/registrar-acceso", json={"carnet": "A123"})
    salida = client.post("/api/registrar-acceso", json={"carnet": "A123"})

    assert entrada.status_code == 200
    assert entrada.json()["tipo"] == "entrada"
    assert entrada.json()["acceso"]["horaSalida"] is None
    assert salida.json()["tipo"] == "salida"
    assert salida.json()["message"] == "✅ Salida registrada"
    assert salida.json()["acceso"]["id"] == entrada.json()["acceso"]["id"]
    assert salida.json()["acceso"]["horaSalida"] is not None
    assert dispatcher.kinds() == ["person_welcome", "access", "access"]


def test_registrar_acceso_errors(client):
    client.post("/api/save", json=PERSONA)

    assert client.post("/api/registrar-acceso", json={}).status_code == 400
    assert client.post("/api/registrar-acceso", json={"carnet": ""}).json() == {
        "detail": "❌ Se requiere carnet o número de tarjeta"
    }
    assert client.post("/api/registrar-acceso", json={"carnet": "Z999"}).status_code == 404


def test_list_accesos(client):
    client.post("/api/save", json=PERSONA)
    client.post("/api/registrar-acceso", json={"carnet": "A123"})

    response = client.get("/api/accesos", params={"tipo": "entrada", "carnet": "A123"})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["limit"] == 10
    assert body["items"][0]["rolUniversidad"] == "Estudiante"


def test_list_accesos_rejects_unknown_filter(client):
    response = client.get("/api/accesos", params={"persona_id": "1"})

    assert response.status_code == 400
    assert "Filtros no permitidos" in response.json()["detail"]


@pytest.mark.parametrize("params", [{"limit": "0"}, {"limit": "500"}, {"page": "0"}])
def test_list_accesos_rejects_bad_pagination(client, params):
    assert client.get("/api/accesos", params=params).status_code == 400


def test_list_personas(client):
    client.post("/api/save", json=PERSONA)
    client.post("/api/registrar-visitante", json=VISITANTE)

    response = client.get("/api/personas", params={"rolUniversidad": "Visitante", "limit": 5})

    body = response.json()
    assert body["total"] == 1
    assert body["limit"] == 5
    assert body["items"][0]["numeroTarjeta"] == "V-017"


@pytest.mark.parametrize(
    "params, status",
    [
        ({"page": "2", "limit": "1"}, 200),
        ({"limit": "500"}, 400),
        ({"persona_id": "1"}, 400),
    ],
)
def test_list_personas_pagination_and_filters(client, params, status):
    client.post("/api/save", json=PERSONA)
    client.post("/api/registrar-visitante", json=VISITANTE)

    response = client.get("/api/personas", params=params)

    assert response.status_code == status


def test_exportar_accesos(client, admin, lector, auth_header, db):
    client.post("/api/save", json=PERSONA)
    client.post("/api/registrar-acceso", json={"carnet": "A123"})

    denied = client.get("/api/accesos/exportar", headers=auth_header(lector))
    response = client.get("/api/accesos/exportar", headers=auth_header(admin))

    assert denied.status_code == 403
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "attachment" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"
    assert db.query(Acceso).count() == 1


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def test_register_and_login(client, dispatcher):
    created = client.post("/api/register", json=CUENTA)
    duplicate = client.post("/api/register", json=CUENTA)
    login = client.post(
        "/api/login",
        json={
            "correoInstitucional": "m.flores@unicatolica.edu.co",
            "password": "Segura2025!",
            "role": "admin",
        },
    )

    assert created.status_code == 201
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "❌ Ya existe un usuario con esta cédula como admin"
    assert login.status_code == 200
    body = login.json()
    assert body["tokenType"] == "bearer"
    assert body["role"] == "admin"
    assert body["nombre"] == "María"

    me = client.get("/api/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.json()["correoInstitucional"] == "m.flores@unicatolica.edu.co"
    assert "passwordHash" not in me.json()
    assert dispatcher.kinds() == ["account_welcome"]


def test_login_with_wrong_password(client, admin):
    response = client.post(
        "/api/login",
        json={"correoInstitucional": admin.correo_institucional, "password": "x", "role": "admin"},
    )

    assert response.status_code == 401


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_list_usuarios(client, admin, lector, auth_header):
    todos = client.get("/api/usuarios", headers=auth_header(admin))
    lectores = client.get("/api/usuarios/lector", headers=auth_header(admin))
    invalido = client.get("/api/usuarios/root", headers=auth_header(admin))

    assert len(todos.json()) == 2
    assert [u["role"] for u in lectores.json()] == ["lector"]
    assert all("resetPasswordToken" not in u for u in todos.json())
    assert invalido.status_code == 400
    assert client.get("/api/usuarios", headers=auth_header(lector)).status_code == 403


def test_verify_password(client, lector):
    ok = client.post(
        "/api/verify-password",
        json={"correoInstitucional": "lector@unicatolica.edu.co", "password": "lector1"},
    )
    wrong = client.post(
        "/api/verify-password",
        json={"correoInstitucional": "lector@unicatolica.edu.co", "password": "mala"},
    )
    unknown = client.post(
        "/api/verify-password",
        json={"correoInstitucional": "nadie@unicatolica.edu.co", "password": "lector1"},
    )

    assert ok.json() == {"verified": True}
    assert wrong.status_code == 401
    assert wrong.json() == {"verified": False}
    assert unknown.status_code == 404


def test_password_recovery_endpoints(client, admin, dispatcher, db):
    forgot = client.post(
        "/api/forgot-password", json={"correoInstitucional": admin.correo_institucional}
    )
    db.refresh(admin)
    token = admin.reset_password_token
    bogus = client.post(
        "/api/verify-token",
        json={"correoInstitucional": admin.correo_institucional, "token": "0" * 64},
    )
    valid = client.post(
        "/api/verify-token",
        json={"correoInstitucional": admin.correo_institucional, "token": token},
    )
    reset = client.post(
        "/api/reset-password",
        json={
            "correoInstitucional": admin.correo_institucional,
            "token": token,
            "nuevaPassword": "nueva123",
        },
    )
    login = client.post(
        "/api/login",
        json={
            "correoInstitucional": admin.correo_institucional,
            "password": "nueva123",
            "role": "admin",
        },
    )

    assert forgot.json()["success"] is True
    assert dispatcher.kinds() == ["password_reset"]
    assert bogus.status_code == 400
    assert valid.status_code == 200
    assert reset.status_code == 200
    assert login.status_code == 200
