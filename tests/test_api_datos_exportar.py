from barberia_core.servicios.datos import _solicitudes


def _cargar_datos(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    client.post("/api/servicios/", json={"barbero_id": luis["id"], "tipo_servicio": "Corte"}, headers=admin_headers)
    client.post(
        "/api/descuentos/",
        json={"barbero_id": luis["id"], "monto": "5", "concepto": "Adelanto"},
        headers=admin_headers,
    )
    art = client.post(
        "/api/inventario/",
        json={"nombre": "Gel", "categoria": "Productos", "cantidad": 4, "precio_unitario": "2"},
        headers=admin_headers,
    ).json()
    client.post(
        "/api/inventario/transacciones",
        json={"articulo_id": art["id"], "tipo": "entrada", "cantidad": 1},
        headers=admin_headers,
    )
    client.post(
        "/api/inventario/ventas",
        json={"articulo_id": art["id"], "cantidad": 1, "precio_venta": "3"},
        headers=admin_headers,
    )
    perfil = client.get("/api/perfiles/", headers=admin_headers).json()[0]
    client.put(f"/api/perfiles/{perfil['id']}/barbero", json={"barbero_id": luis["id"]}, headers=admin_headers)


def test_borrado_con_doble_confirmacion(client, admin_headers, crear_barbero):
    _cargar_datos(client, admin_headers, crear_barbero)

    token = client.post("/api/datos/borrado", headers=admin_headers).json()["token"]

    # No se puede saltar la primera confirmación
    r = client.post(f"/api/datos/borrado/{token}/confirmar-final", headers=admin_headers)
    assert r.status_code == 409
    assert len(client.get("/api/barberos/", headers=admin_headers).json()) == 1

    r = client.post(f"/api/datos/borrado/{token}/confirmar", headers=admin_headers)
    assert r.json()["estado"] == "pendiente_confirmacion_final"

    r = client.post(f"/api/datos/borrado/{token}/confirmar-final", headers=admin_headers)
    assert r.status_code == 200, r.text
    datos = r.json()
    assert datos["estado"] == "completado"
    assert datos["eliminados"]["barberos"] == 1
    assert datos["eliminados"]["ventas_inventario"] == 1
    assert datos["eliminados"]["vinculos_perfiles"] == 1

    assert client.get("/api/barberos/", headers=admin_headers).json() == []
    assert client.get("/api/servicios/", headers=admin_headers).json() == []
    assert client.get("/api/inventario/", headers=admin_headers).json() == []
    # Los usuarios se conservan
    assert client.get("/api/auth/me", headers=admin_headers).status_code == 200

    # La solicitud terminada no queda en memoria
    assert client.get(f"/api/datos/borrado/{token}", headers=admin_headers).status_code == 404
    assert _solicitudes == {}


def test_cancelar_borrado(client, admin_headers, crear_barbero):
    crear_barbero()
    token = client.post("/api/datos/borrado", headers=admin_headers).json()["token"]
    assert client.delete(f"/api/datos/borrado/{token}", headers=admin_headers).status_code == 200
    r = client.post(f"/api/datos/borrado/{token}/confirmar", headers=admin_headers)
    assert r.status_code == 404
    assert len(client.get("/api/barberos/", headers=admin_headers).json()) == 1


def test_borrado_solo_admin(client, user_headers):
    assert client.post("/api/datos/borrado", headers=user_headers).status_code == 403


def test_exportar_tabla_libre(client, user_headers):
    tabla = {
        "titulo": "Ventas de la semana",
        "encabezados": ["Producto", "Cantidad", "Total"],
        "filas": [["Cera", 2, "15.00"], ["Gel", 1, None]],
    }
    r = client.post("/api/exportar/xlsx", json=tabla, headers=user_headers)
    assert r.status_code == 200
    assert r.content[:2] == b"PK"
    assert 'filename="ventas_de_la_semana.xlsx"' in r.headers["content-disposition"]

    r = client.post("/api/exportar/pdf", json=tabla, headers=user_headers)
    assert r.content.startswith(b"%PDF-1.4")
    assert r.content.rstrip().endswith(b"%%EOF")

    assert client.post("/api/exportar/csv", json=tabla, headers=user_headers).status_code == 422
