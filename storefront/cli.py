"""Flask CLI commands for admin operations."""
import click


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        from storefront.extensions import db

        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Seed a demo category, its specifications and a product (idempotent)."""
        from decimal import Decimal
        from storefront.extensions import db
        from storefront.models import Category, Product, Specification

        if Product.query.first():
            click.echo("Products already exist, skipping demo seed.")
            return

        laptops = Category(category_name="Laptops")
        laptops.specifications = [
            Specification(specification_name=name)
            for name in ("RAM", "Storage", "Color")
        ]
        db.session.add(laptops)
        db.session.flush()

        db.session.add(
            Product(
                product_name="Aero 14 Laptop",
                product_sku="AERO-14",
                product_description="14-inch ultralight laptop",
                product_price=Decimal("599.00"),
                product_quantity=25,
                product_status="approved",
                category_id=laptops.category_id,
            )
        )
        db.session.commit()
        click.echo("Seeded demo category with 3 specifications and 1 product.")

    @app.cli.command("stats")
    def stats():
        """Show variant counts by status."""
        from storefront.extensions import db
        from storefront.models import Variant

        rows = (
            db.session.query(Variant.variant_status, db.func.count(Variant.variant_id))
            .filter(Variant.deleted_at.is_(None))
            .group_by(Variant.variant_status)
            .all()
        )
        counts = dict(rows)
        click.echo(f"Total variants: {sum(counts.values())}")
        for status, count in sorted(counts.items()):
            click.echo(f"  {status}: {count}")
