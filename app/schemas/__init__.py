from .user import UserCreate, UserLogin, UserOut, EmployeeOut
from .tokens import Token
from .task import TaskCreate, TaskStatusUpdate, TaskOut, TaskView, TaskListWithStats
