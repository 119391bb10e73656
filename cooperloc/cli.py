"""
CooperLoc - CLI Admin
Ferramenta de linha de comando para operar o servidor de rastreadores

Uso:
    cooperloc-admin login
    cooperloc-admin stats
    cooperloc-admin trackers list [status]
    cooperloc-admin trackers create <serial> [modelo]
    cooperloc-admin trackers send <serial> <franchise_id>
    cooperloc-admin franchises list
    cooperloc-admin users list [status]
    cooperloc-admin users approve <email>
"""
import os
import sys
from pathlib import Path
from typing import Optional

import httpx

BASE_URL = os.getenv("COOPERLOC_URL", "http://localhost:8080")
TOKEN_FILE = Path(".cooperloc_token")


def get_client() -> httpx.Client:
    return httpx.Client(base_url=BASE_URL, timeout=10.0)


def save_token(token: str):
    TOKEN_FILE.write_text(token)


def load_token() -> Optional[str]:
    if TOKEN_FILE.exists():
        return TOKEN_FILE.read_text().strip()
    return None


def get_headers():
    token = load_token()
    if not token:
        print("Erro: Faça login primeiro com 'cooperloc-admin login'")
        sys.exit(1)
    return {"Authorization": f"Bearer {token}"}


def _error(response: httpx.Response) -> str:
    try:
        return response.json().get("detail", response.text)
    except ValueError:
        return response.text


def cmd_login(email: str = None, password: str = None):
    """Login no sistema"""
    email = email or input("Email: ").strip()
    password = password or input("Senha: ").strip()

    with get_client() as client:
        response = client.post("/api/auth/sign-in", json={"email": email, "password": password})

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    data = response.json()
    save_token(data["access_token"])
    print("\n✓ Login bem sucedido!")
    print(f"  Usuário: {data['user']['email']} ({data.get('role_label') or 'sem perfil'})")
    if data.get("redirect_to"):
        print(f"  Atenção: acesso restrito ({data['redirect_to']})")
    return True


def cmd_stats():
    """Mostra o dashboard"""
    with get_client() as client:
        response = client.get("/api/stats/dashboard", headers=get_headers())

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    data = response.json()
    stats = data["stats"]
    print(f"\n{'='*40}")
    print("  DASHBOARD COOPERLOC")
    print(f"{'='*40}")
    print(f"  Rastreadores: {stats['total_trackers']}")
    print(f"    - Em estoque: {stats['in_stock']}")
    print(f"    - Enviados: {stats['sent']}")
    print(f"    - Instalados: {stats['installed']}")
    print(f"    - Com defeito: {stats['defective']}")
    if stats.get("total_franchises") is not None:
        print(f"  Franquias ativas: {stats['total_franchises']}")
    print(f"  Entradas no estoque em {data['year']}:")
    for month in data["monthly_stock"]:
        print(f"    {month['month_name']}: {month['count']}")
    print(f"{'='*40}")
    return True


def cmd_trackers_list(status: str = None):
    """Lista rastreadores"""
    params = {"status": status} if status else {}
    with get_client() as client:
        response = client.get("/api/trackers", params=params, headers=get_headers())

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    trackers = response.json()
    print(f"\n{'='*80}")
    print(f"{'Serial':<20} | {'Modelo':<12} | {'Status':<10} | {'Franquia':<25}")
    print(f"{'='*80}")
    for t in trackers:
        franchise = (t["franchise"] or {}).get("name") or "-"
        print(f"{t['serial_number'][:20]:<20} | {(t['model'] or '-')[:12]:<12} | "
              f"{t['status']:<10} | {franchise[:25]:<25}")
    print(f"\nTotal: {len(trackers)} rastreadores")
    return True


def cmd_trackers_create(serial_number: str, model: str = None):
    """Cadastra rastreador no estoque"""
    with get_client() as client:
        response = client.post(
            "/api/trackers",
            json={"serial_number": serial_number, "model": model},
            headers=get_headers()
        )

    if response.status_code != 201:
        print(f"✗ Erro: {_error(response)}")
        return None

    tracker = response.json()
    print("\n✓ Rastreador cadastrado!")
    print(f"  ID: {tracker['id']}")
    print(f"  Serial: {tracker['serial_number']}")
    return tracker


def _find_tracker(client: httpx.Client, serial_number: str):
    response = client.get("/api/trackers", params={"search": serial_number}, headers=get_headers())
    if response.status_code != 200:
        return None
    for tracker in response.json():
        if tracker["serial_number"] == serial_number:
            return tracker
    return None


def cmd_trackers_send(serial_number: str, franchise_id: str):
    """Envia rastreador do estoque para uma franquia"""
    with get_client() as client:
        tracker = _find_tracker(client, serial_number)
        if not tracker:
            print(f"✗ Rastreador não encontrado: {serial_number}")
            return None

        response = client.post(
            f"/api/trackers/{tracker['id']}/send",
            json={"franchise_id": franchise_id},
            headers=get_headers()
        )

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return None

    tracker = response.json()
    print(f"✓ Rastreador {serial_number} enviado para {tracker['franchise']['name']}")
    return tracker


def cmd_franchises_list():
    """Lista franquias"""
    with get_client() as client:
        response = client.get("/api/franchises", headers=get_headers())

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    franchises = response.json()
    print(f"\n{'='*80}")
    print(f"{'ID':<36} | {'Nome':<20} | {'UF':<2} | {'Ativa':<5} | {'Rastr.':<6}")
    print(f"{'='*80}")
    for f in franchises:
        print(f"{f['id']:<36} | {f['name'][:20]:<20} | {(f['state'] or '-'):<2} | "
              f"{'sim' if f['active'] else 'não':<5} | {f['tracker_count']:<6}")
    print(f"\nTotal: {len(franchises)} franquias")
    return True


def cmd_users_list(status: str = None):
    """Lista usuários"""
    params = {"status": status} if status else {}
    with get_client() as client:
        response = client.get("/api/users", params=params, headers=get_headers())

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    users = response.json()
    print(f"\n{'='*80}")
    print(f"{'Email':<30} | {'Nome':<20} | {'Papel':<10} | {'Status':<8}")
    print(f"{'='*80}")
    for u in users:
        print(f"{u['email'][:30]:<30} | {(u['full_name'] or '-')[:20]:<20} | "
              f"{u['role']:<10} | {u['status']:<8}")
    print(f"\nTotal: {len(users)} usuários")
    return True


def cmd_users_approve(email: str):
    """Aprova cadastro pendente"""
    with get_client() as client:
        response = client.get("/api/users", params={"search": email}, headers=get_headers())
        users = [u for u in response.json() if u["email"] == email.lower()] if response.status_code == 200 else []
        if not users:
            print(f"✗ Usuário não encontrado: {email}")
            return False

        response = client.patch(
            f"/api/users/{users[0]['id']}/status",
            json={"status": "active"},
            headers=get_headers()
        )

    if response.status_code != 200:
        print(f"✗ Erro: {_error(response)}")
        return False

    print(f"✓ Usuário {email} aprovado!")
    return True


def print_help():
    print(__doc__)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print_help()
        return 0

    cmd, args = argv[0].lower(), argv[1:]
    sub = args[0] if args else None

    try:
        if cmd == "login":
            ok = cmd_login(*args[:2])
        elif cmd == "stats":
            ok = cmd_stats()
        elif cmd == "trackers" and sub == "list":
            ok = cmd_trackers_list(*args[1:2])
        elif cmd == "trackers" and sub == "create" and len(args) >= 2:
            ok = cmd_trackers_create(*args[1:3]) is not None
        elif cmd == "trackers" and sub == "send" and len(args) >= 3:
            ok = cmd_trackers_send(args[1], args[2]) is not None
        elif cmd == "franchises" and sub == "list":
            ok = cmd_franchises_list()
        elif cmd == "users" and sub == "list":
            ok = cmd_users_list(*args[1:2])
        elif cmd == "users" and sub == "approve" and len(args) >= 2:
            ok = cmd_users_approve(args[1])
        elif cmd == "help":
            print_help()
            ok = True
        else:
            print(f"Comando desconhecido: {' '.join(argv)}")
            print_help()
            return 1
    except httpx.HTTPError as e:
        print(f"✗ Erro de conexão: {e}")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
