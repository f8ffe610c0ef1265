import abc


# pylint: disable-next= too-few-public-methods
class FactoryBase(abc.ABC):
    """
    Provide a common way to implement factory objects.

    Implementations are instantiated once and then produce objects on demand
    from the name of the attribute being fetched, e.g. mother.wilma or
    mother.create_user. Nothing is generated until the attribute is asked
    for.
    """

    @abc.abstractmethod
    def __getattr__(self, name):
        """
        All factory implementations must implement this method to
        allow them to dynamically generate objects from arbitrary input
        provided by calling as an attribute on this object.
        """
