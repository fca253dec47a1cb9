import pytest

from store.constants import OrderStatus, PaymentMethod
from store.factories import OrderFactory, OrderItemFactory
from store.notifications import OrderNotifier, ProducerNotifier, bank_transfer_instructions


@pytest.fixture
def push(mocker):
    return mocker.patch("store.notifications.PushSender.send_to_user", return_value=1)


@pytest.mark.django_db
class TestOrderNotifier:
    def test_order_created_mails_customer_and_each_producer(self, mailoutbox, push):
        order = OrderFactory()
        first = OrderItemFactory(order=order)
        second = OrderItemFactory(order=order)

        OrderNotifier.order_created(order.pk)

        recipients = sorted(message.to[0] for message in mailoutbox)
        assert recipients == sorted(
            [order.customer.email, first.producer.user.email, second.producer.user.email]
        )
        assert push.call_count == 2

    def test_bank_transfer_order_includes_instructions(self, mailoutbox, push, settings):
        order = OrderFactory(payment_method=PaymentMethod.BANK_TRANSFER)
        OrderItemFactory(order=order)

        OrderNotifier.order_created(order.pk)

        customer_mail = next(m for m in mailoutbox if m.to == [order.customer.email])
        assert settings.MARKETPLACE["BANK_TRANSFER"]["IBAN"] in customer_mail.body
        assert order.order_number in customer_mail.body

    def test_status_changed_mentions_tracking_number(self, mailoutbox, push):
        order = OrderFactory(status=OrderStatus.SHIPPED, tracking_number="TRK-42")

        OrderNotifier.status_changed(order.pk)

        assert "TRK-42" in mailoutbox[0].body
        push.assert_called_once()

    def test_payment_received_pushes_to_producers(self, mailoutbox, push):
        order = OrderFactory()
        item = OrderItemFactory(order=order)

        OrderNotifier.payment_received(order.pk)

        assert mailoutbox[0].to == [order.customer.email]
        pushed_users = {call.args[0] for call in push.call_args_list}
        assert pushed_users == {order.customer_id, item.producer.user_id}

    def test_failures_are_logged_not_raised(self, mocker, caplog):
        mocker.patch("store.notifications.EmailSender.send", side_effect=RuntimeError("boom"))
        order = OrderFactory()

        OrderNotifier.status_changed(order.pk)

        assert "Could not send status notification" in caplog.text


def test_bank_transfer_instructions_use_order_reference(settings, mocker):
    order = mocker.Mock(total="23.00", order_number="ORD-ABC-12345")

    instructions = bank_transfer_instructions(order)

    assert instructions["reference"] == "ORD-ABC-12345"
    assert instructions["amount"] == "23.00"
    assert instructions["iban"] == settings.MARKETPLACE["BANK_TRANSFER"]["IBAN"]


def test_producer_rejection_includes_reason(mailoutbox):
    ProducerNotifier.decision("farm@example.com", "Huerta", approved=False, reason="Missing NIF")

    assert mailoutbox[0].subject == "Your producer application"
    assert "Missing NIF" in mailoutbox[0].body
