"""
VitrineTurbo - Catalog Service
Produtos, tamanhos personalizados e planos de assinatura
"""
import re
import logging
import unicodedata
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.core.errors import NotFoundError, ValidationFailedError
from vitrineturbo.models import Product, User, UserCustomSize, SubscriptionPlan

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Slug ASCII minúsculo para a URL da vitrine"""
    normalized = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "vitrine"


async def generate_unique_slug(db: AsyncSession, name: str) -> str:
    base = slugify(name)
    slug = base
    suffix = 2
    while True:
        result = await db.execute(select(User.id).where(User.slug == slug))
        if result.scalar_one_or_none() is None:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


async def get_seller_by_slug(db: AsyncSession, slug: str) -> User:
    result = await db.execute(select(User).where(User.slug == slug))
    seller = result.scalar_one_or_none()
    if seller is None or seller.is_blocked:
        raise NotFoundError("Vitrine não encontrada")
    return seller


async def list_storefront_products(db: AsyncSession, seller_id: str) -> List[Product]:
    result = await db.execute(
        select(Product)
        .where(Product.user_id == seller_id, Product.is_visible_on_storefront == True)
        .order_by(Product.created_at.desc())
    )
    return list(result.scalars().all())


async def get_products_by_ids(db: AsyncSession, seller_id: str, product_ids: List[str]) -> dict:
    """Produtos do vendedor indexados por id"""
    if not product_ids:
        return {}
    result = await db.execute(
        select(Product).where(Product.user_id == seller_id, Product.id.in_(set(product_ids)))
    )
    return {p.id: p for p in result.scalars().all()}


async def list_user_products(db: AsyncSession, user_id: str) -> List[Product]:
    result = await db.execute(
        select(Product).where(Product.user_id == user_id).order_by(Product.created_at.desc())
    )
    return list(result.scalars().all())


async def create_product(db: AsyncSession, user_id: str, data: dict) -> Product:
    """Cadastra produto respeitando o limite de anúncios do vendedor"""
    result = await db.execute(select(User).where(User.id == user_id))
    owner = result.scalar_one_or_none()
    if owner is None:
        raise NotFoundError("Usuário não encontrado")

    existing = await list_user_products(db, user_id)
    if owner.listing_limit is not None and len(existing) >= owner.listing_limit:
        raise ValidationFailedError(
            f"Limite de {owner.listing_limit} produtos atingido para o seu plano"
        )

    product = Product(user_id=user_id, **data)
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info(f"Produto {product.id} criado por {user_id}")
    return product


async def delete_product(db: AsyncSession, product_id: str, user_id: str, is_admin: bool = False) -> None:
    query = select(Product).where(Product.id == product_id)
    if not is_admin:
        query = query.where(Product.user_id == user_id)
    result = await db.execute(query)
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFoundError("Produto não encontrado")

    await db.delete(product)
    await db.commit()
    logger.info(f"Produto {product_id} removido por {user_id}")


# ============================================
# TAMANHOS PERSONALIZADOS
# ============================================

async def list_custom_sizes(db: AsyncSession, user_id: str) -> List[str]:
    result = await db.execute(
        select(UserCustomSize.size_name)
        .where(UserCustomSize.user_id == user_id)
        .order_by(UserCustomSize.created_at)
    )
    return [row[0] for row in result.all()]


async def add_custom_size(
    db: AsyncSession,
    user_id: Optional[str],
    size_name: str,
    size_type: str = "custom",
) -> bool:
    """
    Cadastra tamanho personalizado.
    Nome vazio: False. Tamanho já existente: True.
    """
    if not user_id or not size_name or not size_name.strip():
        return False

    trimmed = size_name.strip()
    existing = await list_custom_sizes(db, user_id)
    if trimmed in existing:
        return True

    db.add(UserCustomSize(user_id=user_id, size_name=trimmed, size_type=size_type))
    try:
        await db.commit()
    except IntegrityError:
        # Inserido em paralelo
        await db.rollback()
    return True


async def remove_custom_size(db: AsyncSession, user_id: Optional[str], size_name: str) -> bool:
    if not user_id:
        return False

    result = await db.execute(
        select(UserCustomSize).where(
            UserCustomSize.user_id == user_id,
            UserCustomSize.size_name == size_name,
        )
    )
    for record in result.scalars().all():
        await db.delete(record)
    await db.commit()
    return True


# ============================================
# PLANOS
# ============================================

async def list_active_plans(db: AsyncSession) -> List[SubscriptionPlan]:
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active == True)
        .order_by(SubscriptionPlan.display_order)
    )
    return list(result.scalars().all())
