"""Registration, cart mutation and profile/admin operations."""

import pytest
from pydantic import ValidationError
from sqlalchemy import event, insert
from sqlalchemy.exc import IntegrityError

from exceptions import BadRequestError, ConflictError, NotFoundError
from models.order import Order
from models.users import Role, User
from schemas.order import ShippingDetails
from schemas.user import ProfileUpdate, UserCreate, UserUpdate
from services import checkout
from services import users as user_service
from utils.hashing import verify_password


def _registration(username="dave", password="pw-123", password2="pw-123"):
    return UserCreate(username=username, password=password, password2=password2, email=f"{username}@example.com")


class TestRegister:
    def test_creates_user_with_empty_cart(self, db):
        user = user_service.register(db, _registration())

        assert user.id is not None
        assert user.role == Role.USER.value
        assert user.cart == []
        assert verify_password("pw-123", user.password_hash)

    def test_confirmation_must_be_present(self, db):
        with pytest.raises(BadRequestError) as excinfo:
            user_service.register(db, _registration(password2=""))

        assert "password2" in excinfo.value.errors
        assert db.query(User).count() == 0

    def test_passwords_must_match(self, db):
        with pytest.raises(BadRequestError):
            user_service.register(db, _registration(password2="other"))

        assert db.query(User).count() == 0

    def test_duplicate_username_conflicts(self, db, make_user):
        make_user("dave")

        with pytest.raises(ConflictError):
            user_service.register(db, _registration("dave"))

        assert db.query(User).filter(User.username == "dave").count() == 1

    def test_duplicate_is_rejected_by_the_database(self, db):
        def concurrent_registration(session, flush_context, instances):
            # Another request inserted the same username after our existence check
            session.execute(insert(User.__table__).values(
                username="dave", password_hash="x", email="d@example.com",
                role=Role.USER.value, active=True, version_id=1,
            ))

        event.listen(db, "before_flush", concurrent_registration)
        try:
            with pytest.raises(ConflictError):
                user_service.register(db, _registration("dave"))
        finally:
            event.remove(db, "before_flush", concurrent_registration)

        assert db.query(User).filter(User.username == "dave").count() <= 1

    def test_password_longer_than_bcrypt_limit_is_rejected(self, db):
        with pytest.raises(ValidationError) as excinfo:
            _registration(password="x" * 100, password2="x" * 100)

        assert excinfo.value.errors()[0]["loc"] == ("password",)
        assert db.query(User).count() == 0

    def test_password_limit_counts_bytes(self):
        assert _registration(password="x" * 72, password2="x" * 72).password == "x" * 72
        with pytest.raises(ValidationError):
            _registration(password="\u00e9" * 40, password2="\u00e9" * 40)

    def test_unique_constraint_holds_without_service(self, db, make_user):
        make_user("erin")
        db.add(User(username="erin", password_hash="x", role=Role.USER.value))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestCart:
    def test_add_allows_duplicates(self, db, make_user, make_product):
        alice = make_user("alice")
        product = make_product()

        user_service.add_to_cart(db, alice, product.id)
        cart = user_service.add_to_cart(db, alice, product.id)

        assert [p.id for p in cart] == [product.id, product.id]

    def test_add_unknown_product_is_not_found(self, db, make_user):
        alice = make_user("alice")

        with pytest.raises(NotFoundError):
            user_service.add_to_cart(db, alice, 999)

    def test_remove_takes_out_one_unit(self, db, make_user, make_product, fill_cart):
        alice = make_user("alice")
        product = make_product()
        other = make_product("Other")
        fill_cart(alice, product, other, product)

        cart = user_service.remove_from_cart(db, alice, product.id)

        assert sorted(p.id for p in cart) == sorted([other.id, product.id])

    def test_remove_missing_product_is_ignored(self, db, make_user, make_product, fill_cart):
        alice = make_user("alice")
        product = make_product()
        fill_cart(alice, product)

        cart = user_service.remove_from_cart(db, alice, 12345)

        assert [p.id for p in cart] == [product.id]


class TestProfile:
    def test_update_email_and_password(self, db, make_user):
        alice = make_user("alice")

        updated = user_service.update_profile(db, alice, ProfileUpdate(password="new-pass", email="new@example.com"))

        assert updated.email == "new@example.com"
        assert verify_password("new-pass", updated.password_hash)

    def test_blank_values_leave_fields_unchanged(self, db, make_user):
        alice = make_user("alice", email="old@example.com")
        old_hash = alice.password_hash

        updated = user_service.update_profile(db, alice, ProfileUpdate(password="  ", email=""))

        assert updated.email == "old@example.com"
        assert updated.password_hash == old_hash

    def test_long_password_is_rejected(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(password="x" * 100)


class TestAdministration:
    def test_update_role_and_username(self, db, make_user):
        alice = make_user("alice")

        updated = user_service.update_user(db, alice.id, UserUpdate(username="alicia", role=Role.ADMIN))

        assert updated.username == "alicia"
        assert updated.role == "ADMIN"

    def test_rename_to_taken_username_conflicts(self, db, make_user):
        make_user("alice")
        bob = make_user("bob")

        with pytest.raises(ConflictError):
            user_service.update_user(db, bob.id, UserUpdate(username="alice"))

    def test_update_missing_user_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            user_service.update_user(db, 77, UserUpdate(role=Role.ADMIN))

    def test_admin_cannot_delete_self(self, db, make_user):
        admin = make_user("root", role=Role.ADMIN)

        with pytest.raises(BadRequestError):
            user_service.delete_user(db, admin.id, admin)

    def test_delete_keeps_placed_orders(self, db, make_user, make_product, fill_cart, shipping):
        admin = make_user("root", role=Role.ADMIN)
        alice = make_user("alice")
        fill_cart(alice, make_product())
        order = checkout.place_order(db, alice, ShippingDetails(**shipping))

        user_service.delete_user(db, alice.id, admin)

        db.expire_all()
        assert db.query(User).filter(User.username == "alice").first() is None
        assert db.get(Order, order.id) is not None
