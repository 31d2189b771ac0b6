import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from storefront.catalogue.product import Product
from storefront.shared.actor import Actor


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture
def make_product():
    """Factory persisting a product with ``(name, stock, price_modifier)`` color variants."""

    def _make(name="Glass Bauble", price=100_000, variants=(("Red", 5, 0),), active=True, **kwargs):
        product = Product.create(
            name=name,
            slug=kwargs.pop("slug", name.lower().replace(" ", "-")),
            price=price,
            active=active,
            **kwargs,
        )
        for variant_name, stock, modifier in variants:
            product.add_variant(
                name=variant_name,
                variant_type="color",
                value=variant_name.lower(),
                stock=stock,
                price_modifier=modifier,
            )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def admin():
    return Actor.admin("admin-001")


@pytest.fixture
def customer():
    return Actor.customer("cust-001")
