# app/cli/create_tables.py
import asyncio
import click

from app.data.sample_stock import SAMPLE_STOCK
from app.database import get_session, init_models
from app.services.stock_service import StockService


@click.command()
@click.option('--seed/--no-seed', default=False, help='Load the sample stock list into an empty table')
def create_tables(seed):
    """Create the stock table directly using SQLAlchemy"""

    async def _create_tables():
        await init_models()
        print("All tables created successfully!")
        if seed:
            async with get_session() as session:
                added = await StockService(session).seed(SAMPLE_STOCK)
            print(f"Seeded {added} sample item(s)")

    asyncio.run(_create_tables())

if __name__ == "__main__":
    create_tables()
