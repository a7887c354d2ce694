"""Product material cost computation."""

from collections.abc import Mapping
from decimal import Decimal

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    CostBreakdownItem,
    Product,
    ProductCost,
    ProductStockItem,
    StockItemBrand,
    to_price,
)
from bakery_stock.core.exceptions import UnpricedIngredientError

logger = get_logger(__name__)


def resolve_price(
    product_id: str,
    ingredient: ProductStockItem,
    override: StockItemBrand | None,
    preferred: StockItemBrand | None,
) -> StockItemBrand:
    """
    Pick the brand link that prices one ingredient.

    The ingredient's own brand override wins while its link is active;
    otherwise the stock item's preferred brand is used.
    """
    if override is not None:
        return override
    if ingredient.preferred_brand_id and preferred is not None:
        logger.warning(
            "ingredient_brand_override_unavailable",
            product_id=product_id,
            stock_item_id=ingredient.stock_item_id,
            brand_id=ingredient.preferred_brand_id,
        )
    if preferred is None:
        raise UnpricedIngredientError(product_id, ingredient.stock_item_id)
    return preferred


def compute_product_cost(
    product: Product,
    ingredients: list[ProductStockItem],
    overrides: Mapping[str, StockItemBrand | None],
    preferred: Mapping[str, StockItemBrand | None],
) -> ProductCost:
    """
    Cost of one unit of `product`: sum of unit_price * quantity per ingredient.

    `overrides` and `preferred` are keyed by stock item id and hold the
    active brand links already loaded for each ingredient. An empty recipe
    costs zero.
    """
    breakdown = []
    total = Decimal("0.00")
    for ingredient in ingredients:
        link = resolve_price(
            product.id,
            ingredient,
            overrides.get(ingredient.stock_item_id),
            preferred.get(ingredient.stock_item_id),
        )
        line_cost = to_price(link.price_after_tax * ingredient.quantity)
        total += line_cost
        breakdown.append(
            CostBreakdownItem(
                stock_item_id=ingredient.stock_item_id,
                stock_item_name=ingredient.stock_item_name,
                unit_of_measure=ingredient.unit_of_measure,
                quantity=ingredient.quantity,
                brand_id=link.brand_id,
                brand_name=link.brand_name,
                unit_price=link.price_after_tax,
                total_cost=line_cost,
            )
        )

    return ProductCost(
        product_id=product.id,
        product_name=product.name,
        total_cost=to_price(total),
        breakdown=breakdown,
    )
