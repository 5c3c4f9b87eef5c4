from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged in, so the screen can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever items are added, edited or removed from the cart.
    Refreshes the cart screen and the cart counter in the sidebar.

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class OrdersChangedMessage(Message):
    """
    Fired when an order is placed or changes status.
    Listened to by the orders screen and the dashboard restock panel.
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id


class CatalogChangedMessage(Message):
    """
    Fired by the admin screen after a product or division is added or edited.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
