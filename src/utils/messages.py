from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user asks to log out
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Sent by the app to every screen on the stack whenever the session
    manager notifies a change (login, logout, error set or cleared).
    """

    bubble = False


class SessionExpiredMessage(Message):
    """
    Posted when the gateway answered 401 outside of the auth endpoints.
    The app drops the session and goes back to the login screen.
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Sent by the app to every screen on the stack whenever the cart ledger
    notifies a change. Cart screen and sidebar refresh on it.
    """

    bubble = False


class NewOrderMessage(Message):
    """
    Sent by the app to every screen on the stack once an order is placed.
    Listened to by past orders.
    """

    bubble = False
