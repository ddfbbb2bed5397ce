"""
Script para otorgar o retirar privilegios de administrador a un miembro.

El flag is_privileged nunca se modifica desde la API; solo desde aquí.

Uso:
    python scripts/set_privileged.py <game_account_id>
    python scripts/set_privileged.py <game_account_id> --revoke
    python scripts/set_privileged.py --list
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Cargar .env ANTES de importar módulos de app
from dotenv import load_dotenv
load_dotenv()

from app.core.postgres import get_postgres_client, cleanup_postgres


async def set_privileged(game_account_id: str, privileged: bool) -> bool:
    pool = await get_postgres_client().get_pool()
    status = await pool.execute(
        "UPDATE members SET is_privileged = $1, updated_at = now() WHERE game_account_id = $2",
        privileged, game_account_id
    )
    return status.endswith(" 1")


async def list_privileged():
    pool = await get_postgres_client().get_pool()
    rows = await pool.fetch(
        "SELECT id, team_code, game_account_id, nickname, external_subject_id "
        "FROM members WHERE is_privileged ORDER BY id"
    )
    if not rows:
        print("No hay miembros con privilegios.")
        return
    for r in rows:
        print(f"  #{r['id']:<6} team {r['team_code']}  {r['game_account_id']:<13}  "
              f"{r['nickname']}  (subject: {r['external_subject_id'] or '-'})")


async def main():
    parser = argparse.ArgumentParser(
        description='Otorgar o retirar privilegios de administrador'
    )
    parser.add_argument('game_account_id', nargs='?', help='Game account ID del miembro')
    parser.add_argument('--revoke', action='store_true', help='Retirar privilegios en lugar de otorgarlos')
    parser.add_argument('--list', action='store_true', help='Listar miembros con privilegios')

    args = parser.parse_args()
    if not args.list and not args.game_account_id:
        parser.error('game_account_id es requerido (o usa --list)')

    try:
        if args.list:
            await list_privileged()
            return

        privileged = not args.revoke
        if await set_privileged(args.game_account_id, privileged):
            action = "otorgados a" if privileged else "retirados de"
            print(f"✅ Privilegios {action} {args.game_account_id}")
        else:
            print(f"❌ No existe un miembro con game account ID {args.game_account_id}")
            sys.exit(1)
    finally:
        await cleanup_postgres()


if __name__ == '__main__':
    asyncio.run(main())
